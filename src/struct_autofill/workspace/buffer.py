from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from struct_autofill.models import Position


@dataclass(frozen=True)
class BufferEdit:
    start: Position
    end: Position
    new_text: str


class InMemoryBuffer:
    """A line-addressed text buffer implementing the ``TextBuffer`` protocol."""

    def __init__(self, text: str) -> None:
        self.newline = "\r\n" if "\r\n" in text else "\n"
        self._lines = text.replace("\r\n", "\n").split("\n")
        self.edits: list[BufferEdit] = []

    @property
    def text(self) -> str:
        return self.newline.join(self._lines)

    def line_count(self) -> int:
        return len(self._lines)

    def line_text(self, line: int) -> str:
        return self._lines[line]

    def _offset(self, position: Position) -> int:
        if position.line >= len(self._lines):
            raise IndexError(f"Line {position.line} is outside the buffer ({len(self._lines)} lines)")
        column = min(position.column, len(self._lines[position.line]))
        return sum(len(line) + 1 for line in self._lines[: position.line]) + column

    def get_text(self, start: Position, end: Position) -> str:
        joined = "\n".join(self._lines)
        return joined[self._offset(start) : self._offset(end)]

    async def replace(self, start: Position, end: Position, new_text: str) -> None:
        joined = "\n".join(self._lines)
        begin, finish = self._offset(start), self._offset(end)
        if finish < begin:
            raise ValueError(f"Replace range ends before it starts: {start} > {end}")
        joined = joined[:begin] + new_text.replace("\r\n", "\n") + joined[finish:]
        self._lines = joined.split("\n")
        self.edits.append(BufferEdit(start=start, end=end, new_text=new_text))


class FileBuffer(InMemoryBuffer):
    """An ``InMemoryBuffer`` loaded from, and saved back to, a file on disk."""

    def __init__(self, path: Path, text: str) -> None:
        super().__init__(text)
        self.path = path

    @classmethod
    def load(cls, path: str | Path) -> FileBuffer:
        file_path = Path(path)
        try:
            with file_path.open(encoding="utf-8", newline="") as handle:
                text = handle.read()
        except FileNotFoundError:
            raise FileNotFoundError(f"File not found: {path}") from None
        return cls(file_path, text)

    @property
    def dirty(self) -> bool:
        return bool(self.edits)

    def save(self) -> None:
        self.path.write_text(self.text, encoding="utf-8", newline="")
