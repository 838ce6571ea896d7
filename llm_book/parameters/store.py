"""Interactive editing of the document-level parameter mapping.

Parameters configure the runner (``model``, ``temperature``, ``stream`` ...)
and live in the notebook metadata slot, never on individual cells.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional, Tuple

from llm_book.domain.host import NotebookHost, PickItem, Prompter
from llm_book.infrastructure.logging.logger import logger
from llm_book.notebook.serializer import strict_loads


TITLE = "Configure LLM Parameters"
NEW_PARAMETER_LABEL = "New Parameter..."
INVALID_VALUE_MESSAGE = "Format nontrivial input as JSON"

# committing this value removes the key instead of storing it
DELETE_SENTINEL = ""


class _Invalid:
    def __repr__(self) -> str:
        return "INVALID"


INVALID: Any = _Invalid()

_STRUCTURAL = frozenset('{}[]"')


def _try_json(text: str) -> Any:
    try:
        return strict_loads(text)
    except ValueError:
        return INVALID


def parse_lenient(text: str) -> Any:
    """Parse *text* as JSON, falling back to treating it as a bare string.

    ``42`` -> 42, ``English`` -> "English", ``NaN`` -> "NaN",
    ``not valid json {`` -> INVALID.
    Input carrying JSON structure characters is taken as an attempt at JSON
    and is not quoted.
    """

    parsed = _try_json(text)
    if parsed is INVALID and not _STRUCTURAL.intersection(text):
        parsed = _try_json(f'"{text}"')
    return parsed


def validate_value(text: str) -> Optional[str]:
    if parse_lenient(text) is INVALID:
        return INVALID_VALUE_MESSAGE
    return None


def apply_parameter(parameters: Mapping[str, Any], key: str, value: Any) -> Dict[str, Any]:
    """Return a new mapping with *key* set to *value*, or removed for the delete sentinel."""

    updated = dict(parameters)
    if isinstance(value, str) and value == DELETE_SENTINEL:
        updated.pop(key, None)
    else:
        updated[key] = value
    return updated


class ParameterStore:
    """Add/edit/delete loop over a notebook's parameters.

    Each pass re-reads the current mapping from the host, so edits made by a
    previous pass are visible in the next picker.
    """

    def __init__(self, host: NotebookHost, prompter: Prompter):
        self._host = host
        self._prompter = prompter

    @property
    def parameters(self) -> Dict[str, Any]:
        return dict(self._host.metadata.get("parameters") or {})

    def configure(self) -> int:
        """Run the loop until the user dismisses a prompt; returns the number of commits."""

        commits = 0
        while True:
            current = self.parameters
            new_entry = PickItem(label=NEW_PARAMETER_LABEL)
            items: List[PickItem] = [
                PickItem(label=k, description=json.dumps(v, ensure_ascii=False), value=v)
                for k, v in current.items()
            ]
            pick = self._prompter.pick([*items, new_entry], title=TITLE)
            if pick is None:
                return commits

            if pick is new_entry:
                key = self._prompter.input_box("Enter parameter name", title=TITLE)
                if key is None:
                    return commits
                if not key:
                    continue
                prefill = None
            else:
                key = pick.label
                prefill = pick.description

            answered, value = self._ask_value(key, prefill)
            if not answered:
                return commits

            self.commit(key, value)
            commits += 1

    def commit(self, key: str, value: Any) -> Dict[str, Any]:
        """Read-modify-write of the whole parameter mapping."""

        updated = apply_parameter(self.parameters, key, value)
        metadata = dict(self._host.metadata)
        metadata["parameters"] = updated
        self._host.update_metadata(metadata)
        logger.info(
            "Committed parameter",
            extra={"extra": {"key": key, "deleted": key not in updated, "count": len(updated)}},
        )
        return updated

    def _ask_value(self, key: str, prefill: Optional[str]) -> Tuple[bool, Any]:
        """Prompt until the input parses; (False, None) when the user dismissed the box."""

        value = prefill
        while True:
            raw = self._prompter.input_box(
                "Enter `" + key + "` value",
                title=TITLE,
                value=value,
                validate=validate_value,
            )
            if raw is None:
                return False, None
            parsed = parse_lenient(raw)
            if parsed is not INVALID:
                return True, parsed
            self._prompter.show_error(INVALID_VALUE_MESSAGE)
            value = raw
