"""Unit tests for indentation detection and body rendering."""

from struct_autofill.core.indent import compute_indent, leading_whitespace, render_fields
from struct_autofill.models import BraceRange, IndentSpec, ReconciledField
from struct_autofill.workspace.buffer import InMemoryBuffer


def _range(open_line: int, open_column: int, close_line: int, close_column: int) -> BraceRange:
    return BraceRange(
        open_line=open_line, open_column=open_column, close_line=close_line, close_column=close_column
    )


class TestComputeIndent:
    def test_tab_indented_literal(self) -> None:
        buffer = InMemoryBuffer("func f() {\n\tp := Point{}\n}")
        indent = compute_indent(buffer, _range(1, 11, 1, 12))
        assert indent.uses_tabs is True
        assert indent.base_indent == "\t"
        assert indent.field_indent == "\t\t"

    def test_space_indented_literal(self) -> None:
        buffer = InMemoryBuffer("func f() {\n    p := Point{}\n}")
        indent = compute_indent(buffer, _range(1, 14, 1, 15))
        assert indent.uses_tabs is False
        assert indent.unit_width == 4
        assert indent.field_indent == " " * 8

    def test_two_space_unit(self) -> None:
        buffer = InMemoryBuffer("func f() {\n  p := Point{}\n}")
        indent = compute_indent(buffer, _range(1, 12, 1, 13))
        assert indent.unit_width == 2
        assert indent.field_indent == "    "

    def test_existing_field_line_wins(self) -> None:
        buffer = InMemoryBuffer("p := Point{\n   X: 1,\n}")
        indent = compute_indent(buffer, _range(0, 10, 2, 0))
        assert indent.uses_tabs is False
        assert indent.unit_width == 3
        assert indent.field_indent == "   "
        assert indent.base_indent == ""

    def test_top_level_space_neighbors(self) -> None:
        buffer = InMemoryBuffer("var p = Point{}\nfunc f() {\n    x := 1\n}")
        indent = compute_indent(buffer, _range(0, 13, 0, 14))
        assert indent.uses_tabs is False
        assert indent.field_indent == "    "

    def test_no_cues_defaults_to_tab(self) -> None:
        indent = compute_indent(InMemoryBuffer("var p = Point{}"), _range(0, 13, 0, 14))
        assert indent.uses_tabs is True
        assert indent.base_indent == ""
        assert indent.field_indent == "\t"


class TestRenderFields:
    def test_one_field_per_line_with_trailing_commas(self) -> None:
        fields = [
            ReconciledField(name="Name", value_text='""', is_new=True),
            ReconciledField(name="Age", value_text="30"),
        ]
        indent = IndentSpec(uses_tabs=True, unit_width=1, base_indent="\t", field_indent="\t\t")
        assert render_fields(fields, indent) == '\n\t\tName: "",\n\t\tAge: 30,\n\t'

    def test_leading_whitespace(self) -> None:
        assert leading_whitespace(" \t x ") == " \t "
        assert leading_whitespace("x") == ""
