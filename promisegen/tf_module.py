"""Fetch a Terraform module and read the variables it declares."""

from __future__ import annotations

import io
import shutil
import tarfile
import tempfile
import urllib.parse
import urllib.request
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from promisegen.tf_variables import TerraformVariable


class ModuleError(Exception):
    """Raised when a module cannot be fetched or read."""


class HclParseError(ModuleError):
    """Raised when a variables file is not valid HCL."""


# --- fetching -------------------------------------------------------------


def _download(url: str) -> bytes:
    with urllib.request.urlopen(url, timeout=120) as response:
        return response.read()


def _safe_target(root: Path, name: str) -> Path | None:
    target = (root / name).resolve()
    if root.resolve() not in (target, *target.parents):
        return None
    return target


def _extract_archive(data: bytes, dest: Path, strip_top: bool) -> None:
    entries: list[tuple[str, bytes | None]] = []
    if data[:2] == b"PK":
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            for info in archive.infolist():
                entries.append(
                    (info.filename, None if info.is_dir() else archive.read(info))
                )
    else:
        try:
            with tarfile.open(fileobj=io.BytesIO(data), mode="r:*") as archive:
                for member in archive.getmembers():
                    if member.isdir():
                        entries.append((member.name, None))
                    elif member.isfile():
                        handle = archive.extractfile(member)
                        entries.append((member.name, handle.read() if handle else b""))
        except tarfile.TarError as exc:
            raise ModuleError(f"unrecognised archive: {exc}") from exc

    tops = {name.strip("/").split("/", 1)[0] for name, _ in entries if name.strip("/")}
    strip = strip_top or (len(tops) == 1 and any("/" in n.strip("/") for n, _ in entries))
    for name, content in entries:
        parts = name.strip("/").split("/")
        if strip:
            parts = parts[1:]
        if not parts or parts == [""]:
            continue
        target = _safe_target(dest, "/".join(parts))
        if target is None:
            continue
        if content is None:
            target.mkdir(parents=True, exist_ok=True)
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)


def fetch_module(dest: str, source: str) -> None:
    """Place the files of the module at ``source`` into directory ``dest``.

    Supports local directories, GitHub git URLs (fetched as archives at the
    requested ``ref``) and http(s) URLs of zip or tar archives.
    """
    dest_path = Path(dest)
    source = source.removeprefix("file::")
    is_git = source.startswith("git::")
    source = source.removeprefix("git::")

    parsed = urllib.parse.urlsplit(source)
    if parsed.scheme in ("http", "https"):
        ref = urllib.parse.parse_qs(parsed.query).get("ref", ["HEAD"])[0]
        path = parsed.path.strip("/").removesuffix(".git")
        if parsed.netloc == "github.com" and (is_git or source.endswith(".git")):
            owner_repo = "/".join(path.split("/")[:2])
            url = f"https://github.com/{owner_repo}/archive/{ref}.tar.gz"
            strip_top = True
        elif is_git:
            raise ModuleError(f"unsupported git host: {parsed.netloc}")
        else:
            url = source
            strip_top = False
        try:
            data = _download(url)
        except OSError as exc:
            raise ModuleError(f"failed to download {url}: {exc}") from exc
        dest_path.mkdir(parents=True, exist_ok=True)
        _extract_archive(data, dest_path, strip_top)
        return

    local = Path(source)
    if local.is_dir():
        shutil.copytree(local, dest_path, dirs_exist_ok=True)
        return
    raise ModuleError(f"unsupported module source: {source}")


def get_variables_from_module(
    module_source: str,
    fetch: Callable[[str, str], None] = fetch_module,
    make_temp_dir: Callable[[], str] | None = None,
) -> list[TerraformVariable]:
    """Fetch the module and return the variables in its ``variables.tf``."""
    try:
        temp_dir = (
            make_temp_dir() if make_temp_dir else tempfile.mkdtemp(prefix="terraform-module")
        )
    except OSError as exc:
        raise ModuleError(f"failed to create temp directory: {exc}") from exc
    try:
        try:
            fetch(temp_dir, module_source)
        except Exception as exc:
            raise ModuleError(f"failed to download module: {exc}") from exc
        try:
            return extract_variables_from_file(str(Path(temp_dir) / "variables.tf"))
        except ModuleError as exc:
            raise ModuleError(f"failed to parse variables: {exc}") from exc
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)


def extract_variables_from_file(path: str) -> list[TerraformVariable]:
    """Read a variables file and return the variables it declares."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ModuleError(f"failed to read file: {exc}") from exc
    return parse_variables(text)


# --- HCL ------------------------------------------------------------------


@dataclass
class _Token:
    kind: str  # ident, number, string, heredoc, punct, newline, eof
    value: str
    start: int
    end: int
    templated: bool = False


_PUNCT2 = ("==", "!=", "<=", ">=", "&&", "||", "=>", "...")
_PUNCT1 = "{}[]()=,.:?!+-*/%<>"
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\"}


class _Lexer:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def _error(self, message: str) -> HclParseError:
        line = self.text.count("\n", 0, self.pos) + 1
        return HclParseError(f"line {line}: {message}")

    def tokens(self) -> list[_Token]:
        text = self.text
        out: list[_Token] = []
        while self.pos < len(text):
            ch = text[self.pos]
            start = self.pos
            if ch in " \t\r":
                self.pos += 1
            elif ch == "\n":
                self.pos += 1
                out.append(_Token("newline", "\n", start, self.pos))
            elif ch == "#" or text.startswith("//", self.pos):
                end = text.find("\n", self.pos)
                self.pos = len(text) if end < 0 else end
            elif text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                if end < 0:
                    raise self._error("unterminated comment")
                self.pos = end + 2
            elif ch == '"':
                out.append(self._string())
            elif text.startswith("<<", self.pos) and self._heredoc_ahead():
                out.append(self._heredoc())
            elif ch.isalpha() or ch == "_":
                while self.pos < len(text) and (
                    text[self.pos].isalnum() or text[self.pos] in "_-"
                ):
                    self.pos += 1
                out.append(_Token("ident", text[start:self.pos], start, self.pos))
            elif ch.isdigit():
                while self.pos < len(text) and (
                    text[self.pos].isdigit() or text[self.pos] in ".eE"
                ):
                    self.pos += 1
                out.append(_Token("number", text[start:self.pos], start, self.pos))
            else:
                op = next((p for p in _PUNCT2 if text.startswith(p, self.pos)), None)
                if op is None:
                    if ch not in _PUNCT1:
                        raise self._error(f"invalid character {ch!r}")
                    op = ch
                self.pos += len(op)
                out.append(_Token("punct", op, start, self.pos))
        out.append(_Token("eof", "", len(text), len(text)))
        return out

    def _string(self) -> _Token:
        text = self.text
        start = self.pos
        self.pos += 1
        chars: list[str] = []
        templated = False
        while True:
            if self.pos >= len(text) or text[self.pos] == "\n":
                raise self._error("unterminated string")
            ch = text[self.pos]
            if ch == '"':
                self.pos += 1
                break
            if ch == "\\":
                nxt = text[self.pos + 1 : self.pos + 2]
                if nxt in _ESCAPES:
                    chars.append(_ESCAPES[nxt])
                    self.pos += 2
                elif nxt in ("u", "U"):
                    width = 4 if nxt == "u" else 8
                    digits = text[self.pos + 2 : self.pos + 2 + width]
                    try:
                        chars.append(chr(int(digits, 16)))
                    except ValueError:
                        raise self._error("invalid unicode escape") from None
                    self.pos += 2 + width
                else:
                    raise self._error("invalid escape sequence")
            elif text.startswith(("$${", "%%{"), self.pos):
                chars.append(text[self.pos + 1 : self.pos + 3])
                self.pos += 3
            elif text.startswith(("${", "%{"), self.pos):
                templated = True
                self._skip_interpolation()
            else:
                chars.append(ch)
                self.pos += 1
        return _Token("string", "".join(chars), start, self.pos, templated)

    def _skip_interpolation(self) -> None:
        text = self.text
        self.pos += 2
        depth = 1
        while depth:
            if self.pos >= len(text):
                raise self._error("unterminated template interpolation")
            ch = text[self.pos]
            if ch == '"':
                self._string()
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
            self.pos += 1

    def _heredoc_ahead(self) -> bool:
        rest = self.text[self.pos + 2 :].lstrip("-")
        return bool(rest) and (rest[0].isalpha() or rest[0] == "_")

    def _heredoc(self) -> _Token:
        text = self.text
        start = self.pos
        self.pos += 2
        indented = text.startswith("-", self.pos)
        if indented:
            self.pos += 1
        line_end = text.find("\n", self.pos)
        if line_end < 0:
            raise self._error("unterminated heredoc")
        marker = text[self.pos:line_end].strip()
        self.pos = line_end + 1
        lines: list[str] = []
        while True:
            if self.pos >= len(text):
                raise self._error(f"heredoc not terminated by {marker}")
            end = text.find("\n", self.pos)
            end = len(text) if end < 0 else end
            line = text[self.pos:end]
            if line.strip() == marker:
                self.pos = end
                break
            lines.append(line)
            self.pos = min(end + 1, len(text))
        if indented:
            indents = [len(l) - len(l.lstrip(" \t")) for l in lines if l.strip()]
            cut = min(indents, default=0)
            lines = [l[cut:] for l in lines]
        body = "".join(l + "\n" for l in lines)
        templated = "${" in body.replace("$${", "") or "%{" in body.replace("%%{", "")
        return _Token("heredoc", body, start, self.pos, templated)


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = _Lexer(text).tokens()
        self.pos = 0

    def _peek(self) -> _Token:
        return self.tokens[self.pos]

    def _next(self) -> _Token:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def _error(self, token: _Token, message: str) -> HclParseError:
        line = self.text.count("\n", 0, token.start) + 1
        return HclParseError(f"line {line}: {message}")

    def body(self, nested: bool) -> list[tuple]:
        """Return items as ("attr", name, tokens) or ("block", type, labels, items)."""
        items: list[tuple] = []
        while True:
            token = self._next()
            if token.kind == "newline":
                continue
            if token.kind == "eof":
                if nested:
                    raise self._error(token, "unclosed block body")
                return items
            if nested and token.value == "}" and token.kind == "punct":
                return items
            if token.kind != "ident":
                raise self._error(token, "argument or block definition required")
            if self._peek().kind == "punct" and self._peek().value == "=":
                self._next()
                items.append(("attr", token.value, self._expression()))
            else:
                labels: list[str] = []
                while self._peek().kind in ("string", "ident"):
                    label = self._next()
                    if label.templated:
                        raise self._error(label, "invalid block label")
                    labels.append(label.value)
                opener = self._next()
                if opener.kind != "punct" or opener.value != "{":
                    raise self._error(opener, "invalid block definition")
                items.append(("block", token.value, labels, self.body(True)))
            after = self._peek()
            if after.kind not in ("newline", "eof") and not (
                nested and after.kind == "punct" and after.value == "}"
            ):
                raise self._error(after, "missing newline after definition")

    def _expression(self) -> list[_Token]:
        collected: list[_Token] = []
        depth = 0
        while True:
            token = self._peek()
            if token.kind == "eof":
                break
            if depth == 0 and (
                token.kind == "newline" or (token.kind == "punct" and token.value == "}")
            ):
                break
            self._next()
            if token.kind == "newline":
                continue
            if token.kind == "punct" and token.value in "([{":
                depth += 1
            elif token.kind == "punct" and token.value in ")]}":
                depth -= 1
                if depth < 0:
                    raise self._error(token, f"unexpected {token.value!r}")
            collected.append(token)
        if depth:
            raise self._error(self._peek(), "unclosed bracket in expression")
        if not collected:
            raise self._error(self._peek(), "expression expected")
        return collected


def _source(text: str, tokens: list[_Token]) -> str:
    return text[tokens[0].start : tokens[-1].end]


def _is_traversal(tokens: list[_Token]) -> bool:
    if tokens[0].kind != "ident" or len(tokens) % 2 == 0:
        return False
    return all(
        (t.kind == "punct" and t.value == ".") if i % 2 else t.kind == "ident"
        for i, t in enumerate(tokens[1:], start=1)
    )


def _split_args(tokens: list[_Token]) -> list[list[_Token]]:
    args: list[list[_Token]] = [[]]
    depth = 0
    for token in tokens:
        if token.kind == "punct":
            if token.value in "([{":
                depth += 1
            elif token.value in ")]}":
                depth -= 1
            elif token.value == "," and depth == 0:
                args.append([])
                continue
        args[-1].append(token)
    return [arg for arg in args if arg]


def _type_text(text: str, tokens: list[_Token]) -> str:
    if _is_traversal(tokens):
        return tokens[0].value
    if (
        len(tokens) >= 3
        and tokens[0].kind == "ident"
        and tokens[1].kind == "punct"
        and tokens[1].value == "("
        and tokens[-1].value == ")"
    ):
        depth = 0
        for index, token in enumerate(tokens[1:], start=1):
            if token.kind == "punct" and token.value in "([{":
                depth += 1
            elif token.kind == "punct" and token.value in ")]}":
                depth -= 1
                if depth == 0:
                    break
        if index == len(tokens) - 1:
            args = _split_args(tokens[2:-1])
            inner = ", ".join(_type_text(text, arg) for arg in args)
            return f"{tokens[0].value}({inner})"
    return _source(text, tokens)


def _description_text(text: str, tokens: list[_Token]) -> str:
    if len(tokens) == 1 and tokens[0].kind in ("string", "heredoc") and not tokens[0].templated:
        return tokens[0].value
    raw = _source(text, tokens)
    if len(raw) >= 2 and raw.startswith('"') and raw.endswith('"'):
        return raw[1:-1].strip()
    return raw.strip()


def parse_variables(text: str) -> list[TerraformVariable]:
    """Parse HCL text holding only ``variable`` blocks into variables."""
    parser = _Parser(text)
    variables: list[TerraformVariable] = []
    for item in parser.body(False):
        if item[0] == "attr":
            raise HclParseError(f'Unsupported argument; "{item[1]}" is not expected here')
        _, block_type, labels, body = item
        if block_type != "variable":
            raise HclParseError(f'Unsupported block type; "{block_type}" is not expected here')
        if len(labels) != 1:
            raise HclParseError("variable blocks require exactly one label: name")
        attrs = {entry[1]: entry[2] for entry in body if entry[0] == "attr"}
        variable = TerraformVariable(name=labels[0])
        if "type" in attrs:
            variable.type = _type_text(text, attrs["type"])
        if "description" in attrs:
            variable.description = _description_text(text, attrs["description"])
        variables.append(variable)
    return variables