"""Notebook view of a conversation document (serializer + hosts)."""

from .memory_host import FileNotebookSession, InMemoryNotebook
from .serializer import (
    decode,
    deserialize_notebook,
    encode,
    from_notebook,
    serialize_notebook,
    to_notebook,
)

__all__ = [
    "FileNotebookSession",
    "InMemoryNotebook",
    "decode",
    "deserialize_notebook",
    "encode",
    "from_notebook",
    "serialize_notebook",
    "to_notebook",
]
