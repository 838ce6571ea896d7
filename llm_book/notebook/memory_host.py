"""In-memory NotebookHost plus a session bound to an .llm file on disk."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from llm_book.domain.cancellation import CancellationToken
from llm_book.domain.exceptions import BusinessError
from llm_book.domain.models import Cell, CellKind, NotebookData
from llm_book.infrastructure.logging.logger import logger

from . import serializer


class InMemoryNotebook:
    """NotebookHost backed by a NotebookData instance."""

    def __init__(self, data: Optional[NotebookData] = None):
        self._data = data or NotebookData(metadata={"parameters": {}})

    @property
    def data(self) -> NotebookData:
        return self._data

    @property
    def cell_count(self) -> int:
        return len(self._data.cells)

    @property
    def metadata(self) -> Dict[str, Any]:
        return self._data.metadata

    def list_cells(self) -> List[Cell]:
        return list(self._data.cells)

    def insert_cell(self, kind: CellKind, text: str, tag: str) -> Cell:
        cell = Cell(kind=kind, value=text, language_id=tag)
        self._data.cells.append(cell)
        return cell

    def replace_cell_text(self, index: int, text: str) -> None:
        self._data.cells[index].value = text

    def append_cell_text(self, index: int, text: str) -> None:
        self._data.cells[index].value += text

    def set_cell_metadata(self, index: int, metadata: Mapping[str, Any]) -> None:
        self._data.cells[index].metadata = dict(metadata)

    def update_metadata(self, metadata: Mapping[str, Any]) -> None:
        self._data.metadata = dict(metadata)


class FileNotebookSession(InMemoryNotebook):
    """An editing session over a single .llm artifact.

    The file is read once on open; ``save()`` writes the whole document back.
    """

    def __init__(self, path: str | Path, cancellation: Optional[CancellationToken] = None):
        self.path = Path(path)
        try:
            raw = self.path.read_bytes() if self.path.exists() else b""
        except OSError as e:
            raise BusinessError(code="STORE_READ_ERROR", message=str(e), path=str(self.path))
        super().__init__(serializer.deserialize_notebook(raw, cancellation))

    def save(self) -> None:
        data = serializer.serialize_notebook(self.data)
        tmp_path = self.path.with_name(f"{self.path.name}.{uuid4().hex}.tmp")
        try:
            tmp_path.write_bytes(data)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e), path=str(self.path))
        logger.info("Saved notebook", extra={"extra": {"path": str(self.path), "cells": self.cell_count}})
