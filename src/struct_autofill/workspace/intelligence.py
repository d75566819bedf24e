"""Workspace-backed language intelligence: file discovery plus tree-sitter completions."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterator
from fnmatch import fnmatch
from pathlib import Path
from typing import cast

from tree_sitter import Node, Query, QueryCursor
from tree_sitter_language_pack import SupportedLanguage, get_language, get_parser

from struct_autofill.config import Settings, get_settings
from struct_autofill.core.modules import list_modules, module_cache_dir
from struct_autofill.models import CompletionItem, Position

logger = logging.getLogger(__name__)

_LANGUAGE = "go"
_SKIPPED_DIRS = frozenset({".git", ".hg", ".svn", "node_modules", ".idea", ".vscode"})
_ELEMENT_FIELDS = {
    "slice_type": "element",
    "array_type": "element",
    "implicit_length_array_type": "element",
    "map_type": "value",
}


def _load_query(language: str, query_type: str) -> Query:
    queries_dir = Path(__file__).parent.parent / "queries"
    query_path = queries_dir / f"{language}_{query_type}.scm"
    if not query_path.exists():
        raise FileNotFoundError(f"Query file not found: {query_path}")
    query_text = query_path.read_text(encoding="utf-8")
    return Query(get_language(cast(SupportedLanguage, language)), query_text)


def _node_text(source: bytes, node: Node) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _strip_pointer(node: Node) -> Node:
    while node.type == "pointer_type" and node.named_child_count:
        node = cast(Node, node.named_children[0])
    return node


def _type_name(source: bytes, node: Node) -> str | None:
    node = _strip_pointer(node)
    if node.type == "generic_type":
        inner = node.child_by_field_name("type")
        if inner is None:
            return None
        node = inner
    if node.type in ("type_identifier", "qualified_type"):
        return _node_text(source, node)
    return None


def literal_type_at(source: bytes, point: tuple[int, int]) -> str | None:
    """Type name of the composite literal whose body contains ``point`` (row, byte column)."""
    tree = get_parser(cast(SupportedLanguage, _LANGUAGE)).parse(source)
    node: Node | None = tree.root_node.descendant_for_point_range(point, point)
    while node is not None and node.type != "literal_value":
        node = node.parent
    if node is None or node.parent is None:
        return None

    owner = node.parent
    if owner.type == "composite_literal":
        type_node = owner.child_by_field_name("type")
        return _type_name(source, type_node) if type_node is not None else None

    # elided element type: {{...}} inside []T{...} or map[K]T{...}
    container: Node | None = owner
    while container is not None and container.type != "composite_literal":
        container = container.parent
    if container is None:
        return None
    container_type = container.child_by_field_name("type")
    if container_type is None or container_type.type not in _ELEMENT_FIELDS:
        return None
    element = container_type.child_by_field_name(_ELEMENT_FIELDS[container_type.type])
    return _type_name(source, element) if element is not None else None


def struct_field_items(source: bytes, struct_name: str) -> list[CompletionItem] | None:
    """Fields of ``struct_name`` declared in ``source``, or None if it is not declared there."""
    tree = get_parser(cast(SupportedLanguage, _LANGUAGE)).parse(source)
    cursor = QueryCursor(_load_query(_LANGUAGE, "struct_fields"))
    declarations: list[Node] = []
    found = False
    for _, captures in cursor.matches(tree.root_node):
        names = captures.get("struct.name", [])
        if not names or _node_text(source, names[0]) != struct_name:
            continue
        found = True
        declarations.extend(captures.get("struct.field", []))
    if not found:
        return None

    items: list[CompletionItem] = []
    for declaration in sorted(declarations, key=lambda n: n.start_byte):
        type_node = declaration.child_by_field_name("type")
        detail = _node_text(source, type_node) if type_node is not None else ""
        names = declaration.children_by_field_name("name")
        if not names and type_node is not None:
            embedded = _type_name(source, type_node) or detail
            # keep the `*` of an embedded pointer, which is not part of the type node
            detail = source[declaration.start_byte : type_node.end_byte].decode("utf-8", errors="replace")
            items.append(CompletionItem(name=embedded.rsplit(".", 1)[-1], detail=detail))
            continue
        for name in names:
            items.append(CompletionItem(name=_node_text(source, name), detail=detail))
    return items


class WorkspaceIntelligence:
    """Answers the engine's language-service questions from a directory of Go code.

    Implements the ``LanguageIntelligence`` protocol.
    """

    def __init__(self, root: str | Path, settings: Settings | None = None) -> None:
        self.root = Path(root).resolve()
        self.settings = settings or get_settings()

    def _walk_workspace(self) -> Iterator[Path]:
        """Go files under the root, breadth first, each directory in sorted order."""
        pending: deque[Path] = deque([self.root])
        while pending:
            directory = pending.popleft()
            try:
                entries = sorted(directory.iterdir())
            except OSError:
                logger.debug("Cannot list %s", directory)
                continue
            for entry in entries:
                if entry.is_dir():
                    if entry.name not in _SKIPPED_DIRS:
                        pending.append(entry)
                elif entry.suffix == ".go":
                    yield entry

    def _walk_module_cache(self) -> Iterator[Path]:
        cache_root = self.settings.module_cache_dir
        if not self.settings.search_module_cache or cache_root is None:
            return
        for module in list_modules(self.root):
            directory = module_cache_dir(module, cache_root)
            if directory.is_dir():
                yield from sorted(directory.rglob("*.go"))

    def find_files_by_glob(self, pattern: str) -> Iterator[Path]:
        for path in self._walk_workspace():
            if fnmatch("/" + path.relative_to(self.root).as_posix(), pattern):
                yield path
        for path in self._walk_module_cache():
            if fnmatch(path.as_posix(), pattern):
                yield path

    async def read_text(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8", errors="replace")

    async def completions_at(self, file_path: Path, position: Position) -> list[CompletionItem]:
        source_text = await self.read_text(file_path)
        lines = source_text.split("\n")
        if position.line >= len(lines):
            return []
        byte_column = len(lines[position.line][: position.column].encode("utf-8"))
        source = source_text.encode("utf-8")

        type_name = literal_type_at(source, (position.line, byte_column))
        if type_name is None:
            logger.debug("No composite literal at %s:%d:%d", file_path, position.line, position.column)
            return []
        bare_name = type_name.rsplit(".", 1)[-1]

        items = struct_field_items(source, bare_name) if "." not in type_name else None
        if items is not None:
            return items
        for index, path in enumerate(self.find_files_by_glob("**/*.go")):
            if index >= self.settings.max_schema_files:
                break
            if path.resolve() == Path(file_path).resolve():
                continue
            items = struct_field_items((await self.read_text(path)).encode("utf-8"), bare_name)
            if items is not None:
                logger.debug("Completions for %s from %s", type_name, path)
                return items
        return []
