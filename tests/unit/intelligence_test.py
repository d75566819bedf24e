"""Unit tests for the tree-sitter backed workspace intelligence."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from tree_sitter import Language, Parser, Query, QueryCursor

from struct_autofill.config import Settings
from struct_autofill.core.schema import resolve_field_order
from struct_autofill.models import Position
from struct_autofill.workspace.intelligence import WorkspaceIntelligence, literal_type_at, struct_field_items

SOURCE = b"""package main

type Config struct {
	Name    string
	Port, Timeout int
	*Base
	tags    []string `json:"tags"`
}

var c = Config{Name: "x"}
var items = []Config{{Port: 1}}
var byName = map[string]*Config{"a": {}}
"""


class TestStructFieldsQuery:
    def test_captures_struct_fields(self, queries_dir: Path, go_language: Language, go_parser: Parser) -> None:
        query = Query(go_language, (queries_dir / "go_struct_fields.scm").read_text())
        tree = go_parser.parse(SOURCE)
        names: set[str] = set()
        for _, captures in QueryCursor(query).matches(tree.root_node):
            for node in captures.get("struct.name", []):
                names.add(SOURCE[node.start_byte : node.end_byte].decode())
        assert names == {"Config"}

    def test_every_match_is_a_struct_declaration(
        self, queries_dir: Path, go_language: Language, go_parser: Parser
    ) -> None:
        query = Query(go_language, (queries_dir / "go_struct_fields.scm").read_text())
        tree = go_parser.parse(SOURCE)
        for _, captures in QueryCursor(query).matches(tree.root_node):
            assert set(captures) <= {"struct.name", "struct.field"}
            assert captures.get("struct.name")


class TestStructFieldItems:
    def test_fields_in_declaration_order(self) -> None:
        items = struct_field_items(SOURCE, "Config")
        assert items is not None
        assert [(i.name, i.detail) for i in items] == [
            ("Name", "string"),
            ("Port", "int"),
            ("Timeout", "int"),
            ("Base", "*Base"),
            ("tags", "[]string"),
        ]

    def test_unknown_struct(self) -> None:
        assert struct_field_items(SOURCE, "Missing") is None


class TestLiteralTypeAt:
    def test_named_literal(self) -> None:
        assert literal_type_at(SOURCE, (9, 16)) == "Config"

    def test_elided_slice_element(self) -> None:
        assert literal_type_at(SOURCE, (10, 23)) == "Config"

    def test_elided_map_value_through_pointer(self) -> None:
        line = SOURCE.decode().split("\n")[11]
        assert literal_type_at(SOURCE, (11, line.index("{}") + 1)) == "Config"

    def test_outside_literal(self) -> None:
        assert literal_type_at(SOURCE, (0, 2)) is None


class TestWorkspaceIntelligence:
    def test_find_files_by_glob(self, go_workspace: Path, offline_settings: Settings) -> None:
        intelligence = WorkspaceIntelligence(go_workspace, offline_settings)
        found = [p.relative_to(go_workspace.resolve()).as_posix() for p in intelligence.find_files_by_glob("**/*.go")]
        assert found == ["main.go", "models/user.go"]

    def test_find_files_skips_vcs_directories(self, go_workspace: Path, offline_settings: Settings) -> None:
        (go_workspace / ".git").mkdir()
        (go_workspace / ".git" / "hook.go").write_text("package hook\n", encoding="utf-8")
        intelligence = WorkspaceIntelligence(go_workspace, offline_settings)
        assert all(".git" not in p.parts for p in intelligence.find_files_by_glob("**/*.go"))

    def test_module_cache_is_searched(self, tmp_path: Path) -> None:
        workspace = tmp_path / "ws"
        workspace.mkdir()
        (workspace / "go.mod").write_text(
            "module example.com/app\n\nrequire github.com/Acme/lib v1.2.0\n", encoding="utf-8"
        )
        cached = tmp_path / "cache" / "github.com" / "!acme" / "lib@v1.2.0" / "types"
        cached.mkdir(parents=True)
        (cached / "types.go").write_text("package types\n", encoding="utf-8")
        settings = Settings(search_module_cache=True, module_cache_dir=tmp_path / "cache")

        intelligence = WorkspaceIntelligence(workspace, settings)
        with patch("struct_autofill.core.modules.shutil.which", return_value=None):
            found = list(intelligence.find_files_by_glob("**/types*/*.go"))
        assert found == [cached / "types.go"]

    @pytest.mark.asyncio
    async def test_major_version_module_resolves_from_cache(self, tmp_path: Path) -> None:
        workspace = tmp_path / "ws"
        workspace.mkdir()
        (workspace / "go.mod").write_text(
            "module example.com/app\n\nrequire github.com/foo/bar/v2 v2.1.0\n", encoding="utf-8"
        )
        main = workspace / "main.go"
        main.write_text('package main\n\nimport "github.com/foo/bar/v2"\n', encoding="utf-8")
        cached = tmp_path / "cache" / "github.com" / "foo" / "bar" / "v2@v2.1.0"
        cached.mkdir(parents=True)
        (cached / "config.go").write_text("package bar\n\ntype Config struct { Port int }\n", encoding="utf-8")
        settings = Settings(search_module_cache=True, module_cache_dir=tmp_path / "cache")

        intelligence = WorkspaceIntelligence(workspace, settings)
        with patch("struct_autofill.core.modules.shutil.which", return_value=None):
            fields = await resolve_field_order("bar.Config", main, intelligence)
        assert [field.name for field in fields] == ["Port"]

    @pytest.mark.asyncio
    async def test_completions_from_same_file(self, tmp_path: Path, offline_settings: Settings) -> None:
        path = tmp_path / "main.go"
        path.write_bytes(SOURCE)
        intelligence = WorkspaceIntelligence(tmp_path, offline_settings)

        items = await intelligence.completions_at(path, Position(line=9, column=15))

        assert [i.name for i in items] == ["Name", "Port", "Timeout", "Base", "tags"]

    @pytest.mark.asyncio
    async def test_completions_from_other_package(self, go_workspace: Path, offline_settings: Settings) -> None:
        intelligence = WorkspaceIntelligence(go_workspace, offline_settings)
        main = go_workspace / "main.go"
        line = main.read_text(encoding="utf-8").split("\n")[11]

        items = await intelligence.completions_at(main, Position(line=11, column=line.index("{") + 1))

        assert [i.name for i in items] == ["ID", "Name", "Admin", "secret"]

    @pytest.mark.asyncio
    async def test_completions_outside_literal(self, go_workspace: Path, offline_settings: Settings) -> None:
        intelligence = WorkspaceIntelligence(go_workspace, offline_settings)
        assert await intelligence.completions_at(go_workspace / "main.go", Position(line=0, column=0)) == []
