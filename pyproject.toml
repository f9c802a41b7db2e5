[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "promisegen"
version = "0.4.0"
description = "Update Kratix Promise directories and build Promise pieces from Terraform modules, Helm values and operator CRDs"
requires-python = ">=3.10"
keywords = ["kratix", "promise", "kubernetes", "crd", "terraform", "helm", "code-generation"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Code Generators",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "pyyaml>=6.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[project.scripts]
promisegen = "promisegen.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["promisegen"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
