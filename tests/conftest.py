"""Shared fixtures and helpers for tests."""

from collections.abc import Iterator
from fnmatch import fnmatch
from pathlib import Path

import pytest
from tree_sitter import Language, Parser
from tree_sitter_language_pack import get_language, get_parser

from struct_autofill.config import Settings
from struct_autofill.models import CompletionItem, Position

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests under tests/unit as "unit"
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        rel = Path(str(item.fspath)).relative_to(_REPO_ROOT / "tests")
        if rel.parts and rel.parts[0] == "unit":
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# StubIntelligence: an in-memory LanguageIntelligence
# ---------------------------------------------------------------------------


class StubIntelligence:
    """Serves Go files from a dict and canned completion items."""

    def __init__(
        self,
        files: dict[str, str] | None = None,
        completions: list[CompletionItem] | None = None,
    ) -> None:
        self.files = {Path(path): text for path, text in (files or {}).items()}
        self.completions = completions or []
        self.completion_calls: list[tuple[Path, Position]] = []
        self.read_calls: list[Path] = []

    def find_files_by_glob(self, pattern: str) -> Iterator[Path]:
        for path in self.files:
            if fnmatch(path.as_posix(), pattern):
                yield path

    async def read_text(self, path: Path) -> str:
        self.read_calls.append(Path(path))
        try:
            return self.files[Path(path)]
        except KeyError:
            raise FileNotFoundError(path) from None

    async def completions_at(self, file_path: Path, position: Position) -> list[CompletionItem]:
        self.completion_calls.append((file_path, position))
        return list(self.completions)


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def queries_dir() -> Path:
    """Return the path to the queries directory."""
    return Path(__file__).parent.parent / "src" / "struct_autofill" / "queries"


@pytest.fixture
def go_parser() -> Parser:
    """Return a tree-sitter parser for Go."""
    return get_parser("go")


@pytest.fixture
def go_language() -> Language:
    """Return the tree-sitter Go language."""
    return get_language("go")


@pytest.fixture
def stub_intelligence() -> type[StubIntelligence]:
    """Return the in-memory collaborator class, for tests to instantiate."""
    return StubIntelligence


@pytest.fixture
def offline_settings(tmp_path: Path) -> Settings:
    """Settings that never look outside the test's workspace."""
    return Settings(search_module_cache=False, module_cache_dir=tmp_path / "no-module-cache")


@pytest.fixture
def go_workspace(tmp_path: Path) -> Path:
    """A small Go module: main package plus a models package."""
    (tmp_path / "go.mod").write_text("module example.com/app\n\ngo 1.22\n", encoding="utf-8")
    (tmp_path / "models").mkdir()
    (tmp_path / "models" / "user.go").write_text(
        "package models\n"
        "\n"
        "type User struct {\n"
        "\tID    int64\n"
        '\tName  string `json:"name"`\n'
        "\tAdmin bool\n"
        "\tsecret string\n"
        "}\n",
        encoding="utf-8",
    )
    (tmp_path / "main.go").write_text(
        "package main\n"
        "\n"
        'import "example.com/app/models"\n'
        "\n"
        "type Point struct {\n"
        "\tX, Y  int\n"
        "\tlabel string\n"
        "}\n"
        "\n"
        "func main() {\n"
        "\tp := Point{Y: 2}\n"
        "\tu := models.User{}\n"
        "\t_, _ = p, u\n"
        "}\n",
        encoding="utf-8",
    )
    return tmp_path
