"""Locate a struct declaration in Go source and list its fields in declaration order."""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncIterator, Iterable, Iterator
from itertools import islice
from pathlib import Path

from struct_autofill.core.braces import iter_code_chars
from struct_autofill.core.ports.intelligence import LanguageIntelligence
from struct_autofill.models import CompletionItem, FieldDeclaration

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILES = 500

# protoc-gen-go and gogo internals that are never set by hand
GENERATED_FIELDS = frozenset(
    {
        "state",
        "sizeCache",
        "unknownFields",
        "XXX_NoUnkeyedLiteral",
        "XXX_unrecognized",
        "XXX_sizecache",
    }
)

_PACKAGE = re.compile(r"^\s*package\s+(?P<name>[A-Za-z_]\w*)", re.MULTILINE)
_IMPORT_BLOCK = re.compile(r"^\s*import\s*\((?P<body>.*?)\)", re.MULTILINE | re.DOTALL)
_IMPORT_LINE = re.compile(r"^\s*import\s+(?P<spec>[\w.]*\s*\"[^\"]+\")", re.MULTILINE)
_IMPORT_SPEC = re.compile(r"(?:(?P<alias>[\w.]+)\s+)?\"(?P<path>[^\"]+)\"")
_FIELD_LINE = re.compile(r"^(?P<names>[A-Za-z_]\w*(?:\s*,\s*[A-Za-z_]\w*)*)\s+(?P<type>\S.*)$")
_EMBEDDED = re.compile(r"^\*?(?P<type>[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)?)(?:\[[^\]]*\])?$")
_VERSION_SUFFIX = re.compile(r"^v\d+$")
_GOPKG_VERSION = re.compile(r"\.v\d+$")
_EXPORTED_TYPE = re.compile(r"(?<![\w.])[A-Z]\w*(?![\w.(])")


def split_type_name(type_name: str) -> tuple[str | None, str]:
    if "." in type_name:
        qualifier, bare = type_name.split(".", 1)
        return qualifier, bare
    return None, type_name


def package_name(text: str) -> str | None:
    m = _PACKAGE.search(text)
    return m.group("name") if m else None


def import_paths(text: str) -> dict[str, str]:
    """Map each name an import is referenced by to its import path."""
    specs: list[str] = []
    for block in _IMPORT_BLOCK.finditer(text):
        specs.extend(line.split("//", 1)[0] for line in block.group("body").splitlines())
    specs.extend(m.group("spec") for m in _IMPORT_LINE.finditer(text))

    imports: dict[str, str] = {}
    for spec in specs:
        m = _IMPORT_SPEC.search(spec)
        if m is None:
            continue
        path = m.group("path")
        alias = m.group("alias")
        if alias in ("_", "."):
            continue
        imports[alias or default_import_name(path)] = path
    return imports


def default_import_name(import_path: str) -> str:
    segments = [s for s in import_path.split("/") if s]
    if len(segments) > 1 and _VERSION_SUFFIX.match(segments[-1]):
        segments = segments[:-1]
    if not segments:
        return import_path
    name = _GOPKG_VERSION.sub("", segments[-1])
    return name.removeprefix("go-").replace("-", "_")


def _declaration(text: str, bare_name: str) -> re.Match[str] | None:
    """Match of ``type <bare_name>[params] struct {``, grouped form included; it ends just past the ``{``."""
    name = re.escape(bare_name)
    direct = re.search(rf"\btype\s+{name}(?P<params>\[[^\]]*\])?\s+struct\s*\{{", text)
    if direct:
        return direct
    grouped = re.compile(rf"^\s*{name}(?P<params>\[[^\]]*\])?\s+struct\s*\{{", re.MULTILINE)
    for m in grouped.finditer(text):
        group_open = text.rfind("type (", 0, m.start())
        if group_open == -1:
            continue
        between = text[group_open : m.start()]
        if re.search(r"^\)", between, re.MULTILINE) is None:
            return m
    return None


def type_parameters(text: str, bare_name: str) -> list[str]:
    """Names of the type parameters of a generic struct (``[K comparable, V any]`` -> K, V)."""
    m = _declaration(text, bare_name)
    if m is None or m.group("params") is None:
        return []
    params = m.group("params")[1:-1]
    return [piece.split()[0] for piece in params.split(",") if piece.strip()]


def find_struct_body(text: str, bare_name: str) -> str | None:
    """Return the text strictly inside the declaration's braces, or None."""
    m = _declaration(text, bare_name)
    if m is None:
        return None
    start = m.end() - 1
    lines = text[start:].split("\n")
    depth = 0
    for line, col, ch in iter_code_chars(lines):
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                if line == 0:
                    return lines[0][1:col]
                inner = [lines[0][1:], *lines[1:line], lines[line][:col]]
                return "\n".join(inner)
    return None


def _strip_line(line: str) -> str:
    """Drop struct tags, comments and semicolons from a declaration line."""
    kept: list[str] = []
    for _, _, ch in iter_code_chars([line]):
        kept.append(ch)
    return " ".join("".join(kept).replace(";", " ").split())


def parse_struct_fields(body: str) -> list[FieldDeclaration]:
    """One field per physical line at the top level of the body, in source order."""
    fields: list[FieldDeclaration] = []
    depth = 0
    for raw_line in _split_statements(body):
        line = _strip_line(raw_line)
        line_depth = depth
        depth += line.count("{") - line.count("}")
        if line_depth > 0 or not line or line.startswith("}"):
            continue
        m = _FIELD_LINE.match(line)
        if m is not None:
            declared_type = m.group("type").strip()
            if declared_type.endswith("{"):
                declared_type = declared_type[:-1].rstrip() + "{}"
            for name in re.split(r"\s*,\s*", m.group("names")):
                fields.append(FieldDeclaration(name=name, declared_type=declared_type))
            continue
        embedded = _EMBEDDED.match(line)
        if embedded is not None:
            type_name = embedded.group("type")
            fields.append(FieldDeclaration(name=type_name.rsplit(".", 1)[-1], declared_type=line))
    return fields


def _split_statements(body: str) -> Iterator[str]:
    """Physical lines, with ``A int; B string`` single-line bodies split on semicolons."""
    for line in body.split("\n"):
        start = 0
        for _, col, ch in iter_code_chars([line]):
            if ch == ";":
                yield line[start:col]
                start = col + 1
        yield line[start:]


def filter_fields(
    fields: Iterable[FieldDeclaration], same_package: bool
) -> list[FieldDeclaration]:
    """Drop generated fields, unexported fields from other packages, and duplicates."""
    seen: set[str] = set()
    kept: list[FieldDeclaration] = []
    for field in fields:
        if field.name in GENERATED_FIELDS or field.name in seen:
            continue
        if not same_package and not field.name[:1].isupper():
            continue
        seen.add(field.name)
        kept.append(field)
    return kept


def fields_from_completions(items: Iterable[CompletionItem], same_package: bool) -> list[FieldDeclaration]:
    """Field list from completion candidates, in the order the service returned them."""
    declared = [
        FieldDeclaration(name=item.name, declared_type=(item.detail or "").strip())
        for item in items
        if item.kind == "field" and "." not in item.name
    ]
    return filter_fields(declared, same_package)


def qualify_type(declared_type: str, qualifier: str, type_params: Iterable[str] = ()) -> str:
    """Prefix the bare exported type names in ``declared_type`` with ``qualifier``.

    ``Profile`` becomes ``models.Profile`` and ``map[string]*Item`` becomes
    ``map[string]*models.Item``. Names already qualified and the struct's own
    type parameters are left alone.
    """
    skip = set(type_params)

    def _prefix(m: re.Match[str]) -> str:
        return m.group(0) if m.group(0) in skip else f"{qualifier}.{m.group(0)}"

    return _EXPORTED_TYPE.sub(_prefix, declared_type)


def qualify_fields(
    fields: Iterable[FieldDeclaration], qualifier: str, type_params: Iterable[str] = ()
) -> list[FieldDeclaration]:
    params = list(type_params)
    return [
        FieldDeclaration(name=field.name, declared_type=qualify_type(field.declared_type, qualifier, params))
        for field in fields
    ]


def _qualifier_dirs(qualifier: str, current_text: str) -> tuple[str, ...]:
    """Trailing directory names a package's files live under (``bar/v2`` for a ``/v2`` module)."""
    path = import_paths(current_text).get(qualifier)
    if path is None:
        return (qualifier,)
    segments = [s for s in path.split("/") if s]
    if len(segments) > 1 and _VERSION_SUFFIX.match(segments[-1]):
        return tuple(segments[-2:])
    return (segments[-1],)


def _path_matches_dirs(path: Path, directories: tuple[str, ...]) -> bool:
    # module cache directories carry the version: bar/v2@v2.1.0, yaml.v3@v3.0.1
    parts = tuple(part.split("@", 1)[0] for part in path.parent.parts)
    return parts[-len(directories) :] == directories


async def _iter_sources(
    collaborator: LanguageIntelligence,
    current_file: Path,
    current_text: str,
    qualifier: str | None,
    max_files: int,
) -> AsyncIterator[tuple[Path, str]]:
    """Lazily yield ``(path, text)`` pairs in search order."""
    if qualifier is None:
        yield current_file, current_text
        candidates: Iterable[Path] = (
            p for p in collaborator.find_files_by_glob("**/*.go") if p.resolve() != current_file.resolve()
        )
    else:
        directories = _qualifier_dirs(qualifier, current_text)
        candidates = (
            p
            for p in collaborator.find_files_by_glob(f"**/{directories[-1]}*/*.go")
            if _path_matches_dirs(p, directories)
        )
    for path in islice(candidates, max_files):
        try:
            text = await collaborator.read_text(path)
        except OSError:
            logger.debug("Skipping unreadable file %s", path)
            continue
        yield path, text


async def resolve_field_order(
    type_name: str,
    current_file: Path,
    collaborator: LanguageIntelligence,
    current_text: str | None = None,
    max_files: int = DEFAULT_MAX_FILES,
) -> list[FieldDeclaration]:
    """Declared fields of ``type_name`` in declaration order, or [] when not found."""
    qualifier, bare_name = split_type_name(type_name)
    if current_text is None:
        current_text = await collaborator.read_text(current_file)
    current_package = package_name(current_text)

    async for path, text in _iter_sources(collaborator, current_file, current_text, qualifier, max_files):
        body = find_struct_body(text, bare_name)
        if body is None:
            continue
        same_package = qualifier is None and current_package is not None and package_name(text) == current_package
        fields = filter_fields(parse_struct_fields(body), same_package)
        if qualifier is not None:
            # field types are written relative to the declaring package
            fields = qualify_fields(fields, qualifier, type_parameters(text, bare_name))
        logger.debug("Found %s in %s (%d fields, same package: %s)", type_name, path, len(fields), same_package)
        return fields

    logger.debug("No declaration of %s found", type_name)
    return []
