import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from uuid import uuid4

from llm_book.config.settings import settings
from llm_book.domain.exceptions import BusinessError, MissingInputError
from llm_book.domain.models import ConversationDocument
from llm_book.notebook import serializer


def artifact_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC instant without ':'/'-' separators or milliseconds, e.g. 20240102T030405Z."""

    now = now or datetime.now(timezone.utc)
    iso = now.astimezone(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
    return iso.replace(":", "").replace("-", "")


def artifact_name(document_id: str, extension: str, now: Optional[datetime] = None) -> str:
    return f"{document_id}-{artifact_timestamp(now)}.{extension}"


class ArtifactStore:
    """Writes conversation documents as .llm files inside a workspace folder."""

    def __init__(self, root: str | Path | None = None, extension: Optional[str] = None):
        raw_root = root if root is not None else settings.workspace_root
        self._root = Path(raw_root).expanduser().resolve() if raw_root else None
        self._extension = extension or settings.artifact_extension

    @property
    def root(self) -> Optional[Path]:
        return self._root

    @property
    def extension(self) -> str:
        return self._extension

    def require_root(self) -> Path:
        if self._root is None:
            raise MissingInputError(code="MISSING_WORKSPACE", message="No workspace folder found.")
        return self._root

    def write_new(self, document_id: str, document: ConversationDocument, now: Optional[datetime] = None) -> Path:
        root = self.require_root()
        path = root / artifact_name(document_id, self._extension, now)
        self.write(path, document)
        return path

    def write(self, path: Path, document: ConversationDocument) -> None:
        data = serializer.encode(document)
        tmp_path = path.with_name(f"{path.name}.{uuid4().hex}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e), path=str(path))

    def is_artifact(self, path: Path) -> bool:
        return path.suffix == f".{self._extension}"
