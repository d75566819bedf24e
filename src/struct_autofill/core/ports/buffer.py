from typing import Protocol

from struct_autofill.models import Position


class TextBuffer(Protocol):
    def line_count(self) -> int: ...

    def line_text(self, line: int) -> str: ...

    def get_text(self, start: Position, end: Position) -> str: ...

    async def replace(self, start: Position, end: Position, new_text: str) -> None: ...
