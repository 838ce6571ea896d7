"""Shared fakes for the llm_book test suite."""

from typing import Any, Dict, List, Optional, Sequence

import pytest

from llm_book.domain.host import PickItem


class ScriptedPrompter:
    """Prompter that replays canned answers.

    ``picks`` holds labels (or None to dismiss), ``inputs`` holds input box
    answers (or None to dismiss). Validators are recorded, not enforced.
    """

    def __init__(self, picks: Optional[List[Optional[str]]] = None, inputs: Optional[List[Optional[str]]] = None):
        self.picks = list(picks or [])
        self.inputs = list(inputs or [])
        self.pick_calls: List[List[str]] = []
        self.input_calls: List[Dict[str, Any]] = []
        self.errors: List[str] = []
        self.infos: List[str] = []

    def pick(self, items: Sequence[PickItem], title: Optional[str] = None) -> Optional[PickItem]:
        self.pick_calls.append([i.label for i in items])
        answer = self.picks.pop(0) if self.picks else None
        if answer is None:
            return None
        for item in items:
            if item.label == answer:
                return item
        raise AssertionError(f"no pick item labelled {answer!r}")

    def input_box(self, prompt, title=None, value=None, validate=None, password=False):
        answer = self.inputs.pop(0) if self.inputs else None
        self.input_calls.append(
            {
                "prompt": prompt,
                "value": value,
                "password": password,
                "validation": validate(answer) if (validate and answer is not None) else None,
            }
        )
        return answer

    def show_error(self, message: str) -> None:
        self.errors.append(message)

    def show_info(self, message: str) -> None:
        self.infos.append(message)


class DictSecretStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data = dict(initial or {})

    def get(self, key):
        return self.data.get(key)

    def store(self, key, value):
        self.data[key] = value


@pytest.fixture
def make_prompter():
    return ScriptedPrompter


@pytest.fixture
def secrets():
    return DictSecretStore()
