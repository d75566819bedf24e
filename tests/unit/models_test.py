"""Unit tests for the pydantic models and settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from struct_autofill.config import default_module_cache_dir, get_settings
from struct_autofill.models import (
    FILL_MESSAGES,
    BraceRange,
    FillResult,
    FillStatus,
    LiteralContext,
    LiteralRole,
    Position,
)


class TestPosition:
    def test_rejects_negative_coordinates(self) -> None:
        with pytest.raises(ValidationError):
            Position(line=-1, column=0)

    def test_as_tuple_orders_positions(self) -> None:
        assert Position(line=1, column=9).as_tuple() < Position(line=2, column=0).as_tuple()


class TestBraceRange:
    def test_body_bounds(self) -> None:
        brace_range = BraceRange(open_line=3, open_column=7, close_line=5, close_column=1)
        assert brace_range.body_start == Position(line=3, column=8)
        assert brace_range.body_end == Position(line=5, column=1)


class TestLiteralContext:
    def test_qualified_type(self) -> None:
        context = LiteralContext(type_name="models.User", role=LiteralRole.ASSIGNMENT)
        assert context.qualifier == "models"

    def test_unqualified_type(self) -> None:
        context = LiteralContext(type_name="User", role=LiteralRole.NESTED_FIELD, is_nested=True)
        assert context.qualifier is None


class TestFillStatus:
    def test_every_status_has_a_message(self) -> None:
        assert set(FILL_MESSAGES) == set(FillStatus)

    @pytest.mark.parametrize(
        ("status", "is_error"),
        [
            (FillStatus.FILLED, False),
            (FillStatus.NOTHING_TO_FILL, False),
            (FillStatus.NO_ENCLOSING_LITERAL, True),
            (FillStatus.NO_SCHEMA_FOUND, True),
            (FillStatus.COLLABORATOR_FAILURE, True),
        ],
    )
    def test_is_error(self, status: FillStatus, is_error: bool) -> None:
        assert status.is_error is is_error

    def test_result_serializes_enums_as_values(self) -> None:
        result = FillResult(status=FillStatus.FILLED, message="ok", role=LiteralRole.MAP_VALUE)
        dumped = result.model_dump(mode="json")
        assert dumped["status"] == "filled"
        assert dumped["role"] == "map_value"
        assert dumped["added_fields"] == []


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("STRUCT_AUTOFILL_VERBOSE", raising=False)
        monkeypatch.delenv("STRUCT_AUTOFILL_MAX_SCHEMA_FILES", raising=False)
        monkeypatch.delenv("STRUCT_AUTOFILL_MODULE_CACHE", raising=False)
        settings = get_settings()
        assert settings.verbose is False
        assert settings.max_schema_files == 500
        assert settings.search_module_cache is True

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STRUCT_AUTOFILL_VERBOSE", "yes")
        monkeypatch.setenv("STRUCT_AUTOFILL_MAX_SCHEMA_FILES", "25")
        monkeypatch.setenv("STRUCT_AUTOFILL_MODULE_CACHE", "off")
        settings = get_settings()
        assert settings.verbose is True
        assert settings.max_schema_files == 25
        assert settings.search_module_cache is False

    def test_explicit_verbose_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STRUCT_AUTOFILL_VERBOSE", "1")
        assert get_settings(verbose=False).verbose is False

    def test_module_cache_dir(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("GOMODCACHE", str(tmp_path / "modcache"))
        assert default_module_cache_dir() == tmp_path / "modcache"
        monkeypatch.delenv("GOMODCACHE")
        monkeypatch.setenv("GOPATH", str(tmp_path / "gopath"))
        assert default_module_cache_dir() == tmp_path / "gopath" / "pkg" / "mod"
