from struct_autofill.workspace.buffer import BufferEdit, FileBuffer, InMemoryBuffer
from struct_autofill.workspace.intelligence import WorkspaceIntelligence, literal_type_at, struct_field_items

__all__ = [
    "BufferEdit",
    "FileBuffer",
    "InMemoryBuffer",
    "WorkspaceIntelligence",
    "literal_type_at",
    "struct_field_items",
]
