"""Update Kratix Promise directories and build Promise pieces from Terraform, Helm and operator CRDs."""

__version__ = "0.4.0"