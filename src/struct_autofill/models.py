from enum import Enum

from pydantic import BaseModel, Field


class Position(BaseModel):
    line: int = Field(ge=0)
    column: int = Field(ge=0)

    def as_tuple(self) -> tuple[int, int]:
        return (self.line, self.column)


class BraceRange(BaseModel):
    open_line: int = Field(ge=0)
    open_column: int = Field(ge=0)
    close_line: int = Field(ge=0)
    close_column: int = Field(ge=0)

    @property
    def open(self) -> Position:
        return Position(line=self.open_line, column=self.open_column)

    @property
    def close(self) -> Position:
        return Position(line=self.close_line, column=self.close_column)

    @property
    def body_start(self) -> Position:
        """First position strictly after the open brace."""
        return Position(line=self.open_line, column=self.open_column + 1)

    @property
    def body_end(self) -> Position:
        """The close brace position (exclusive end of the body)."""
        return self.close


class LiteralRole(str, Enum):
    ASSIGNMENT = "assignment"
    NESTED_FIELD = "nested_field"
    SLICE_ELEMENT = "slice_element"
    MAP_VALUE = "map_value"
    FUNCTION_ARGUMENT = "function_argument"
    APPEND_ARGUMENT = "append_argument"


class LiteralContext(BaseModel):
    type_name: str
    role: LiteralRole
    is_nested: bool = False

    @property
    def qualifier(self) -> str | None:
        if "." in self.type_name:
            return self.type_name.split(".", 1)[0]
        return None


class FieldDeclaration(BaseModel):
    name: str
    declared_type: str = ""


class ReconciledField(BaseModel):
    name: str
    value_text: str
    is_new: bool = False


class IndentSpec(BaseModel):
    uses_tabs: bool
    unit_width: int = 4
    base_indent: str = ""
    field_indent: str = "\t"


class CompletionItem(BaseModel):
    name: str
    detail: str | None = None
    kind: str = "field"


class FillStatus(str, Enum):
    FILLED = "filled"
    NOTHING_TO_FILL = "nothing_to_fill"
    NO_ENCLOSING_LITERAL = "no_enclosing_literal"
    NO_SCHEMA_FOUND = "no_schema_found"
    COLLABORATOR_FAILURE = "collaborator_failure"

    @property
    def is_error(self) -> bool:
        return self not in (FillStatus.FILLED, FillStatus.NOTHING_TO_FILL)


FILL_MESSAGES: dict[FillStatus, str] = {
    FillStatus.FILLED: "added {count} field(s): {names}",
    FillStatus.NOTHING_TO_FILL: "literal already has every field",
    FillStatus.NO_ENCLOSING_LITERAL: "cannot recognize a record literal at the cursor",
    FillStatus.NO_SCHEMA_FOUND: "cannot determine this type's fields",
    FillStatus.COLLABORATOR_FAILURE: "language service or edit failed: {error}",
}


class FillResult(BaseModel):
    status: FillStatus
    message: str
    type_name: str | None = None
    role: LiteralRole | None = None
    added_fields: list[str] = Field(default_factory=list)
    dropped_fields: list[str] = Field(default_factory=list)
    replaced_range: BraceRange | None = None
    new_text: str | None = None
