from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

from struct_autofill.models import CompletionItem, Position


class LanguageIntelligence(Protocol):
    async def completions_at(self, file_path: Path, position: Position) -> list[CompletionItem]: ...

    def find_files_by_glob(self, pattern: str) -> Iterator[Path]: ...

    async def read_text(self, path: Path) -> str: ...
