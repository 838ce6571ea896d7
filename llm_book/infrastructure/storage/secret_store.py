import json
import os
from pathlib import Path
from typing import Dict, Optional
from uuid import uuid4

from llm_book.config.settings import settings
from llm_book.domain.exceptions import BusinessError


class FileSecretStore:
    """Key/value credential store kept as one JSON object on disk."""

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path).expanduser() if path else settings.secrets_path

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) and value else None

    def store(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(f"{self._path.name}.{uuid4().hex}.tmp")
        try:
            tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e))

    def _read(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise BusinessError(code="STORE_READ_ERROR", message=str(e))
        return data if isinstance(data, dict) else {}
