import json
import re
import tempfile
from pathlib import Path

import pytest

from llm_book.config.settings import Settings
from llm_book.domain.cancellation import CancellationToken
from llm_book.domain.exceptions import OperationCancelled, RateLimitError
from llm_book.domain.models import CellKind, NotebookData
from llm_book.generation.driver import GenerationDriver, split_chunks
from llm_book.infrastructure.storage.artifact_store import ArtifactStore
from llm_book.notebook.memory_host import InMemoryNotebook


class FakeRunner:
    """Records every call and fails if two runs ever overlap."""

    name = "fake"

    def __init__(self, stream=False):
        self.stream = stream
        self.calls = []
        self.events = []
        self._running = False

    def generate(self, history, parameters):
        assert not self._running, "runner invoked while a previous run was in flight"
        self.calls.append(([(m.role, m.content) for m in history], dict(parameters)))
        last = history[-1].content
        if not self.stream:
            self.events.append(("run", last))
            return f"T({last})"
        return self._pieces(last)

    def _pieces(self, last):
        self._running = True
        self.events.append(("start", last))
        yield "T("
        yield last
        yield ")"
        self.events.append(("end", last))
        self._running = False


class FailingRunner:
    name = "failing"

    def __init__(self):
        self.calls = 0

    def generate(self, history, parameters):
        self.calls += 1
        if self.calls == 1:
            raise RateLimitError(code="RATE_LIMIT", message="slow down")
        return "ok"


def _settings(**kw):
    return Settings(default_language="French", **kw)


def _driver(runner, prompter, root=None):
    return GenerationDriver(runner, prompter, ArtifactStore(root=root, extension="llm"), settings=_settings())


def test_split_chunks_by_line():
    assert split_chunks("a\n\nb\n") == ["a", "", "b"]
    assert split_chunks("") == []
    assert split_chunks(None) == []


def test_blank_chunks_are_skipped_and_turns_run_in_order(make_prompter):
    runner = FakeRunner()
    host = InMemoryNotebook()
    produced = _driver(runner, make_prompter()).run_chunks(host, ["a", "", "b"])

    assert [c.value for c in produced] == ["T(a)", "T(b)"]
    assert [(c.language_id, c.value) for c in host.list_cells()] == [
        ("user", "a"),
        ("assistant", "T(a)"),
        ("user", "b"),
        ("assistant", "T(b)"),
    ]
    assert runner.events == [("run", "a"), ("run", "b")]
    # the second run sees the completed first turn in its history
    assert runner.calls[1][0] == [("user", "a"), ("assistant", "T(a)"), ("user", "b")]


def test_streamed_output_is_appended_into_one_cell(make_prompter):
    runner = FakeRunner(stream=True)
    host = InMemoryNotebook()
    _driver(runner, make_prompter()).run_chunks(host, ["a", "  ", "b"])

    assert [c.value for c in host.list_cells() if c.language_id == "assistant"] == ["T(a)", "T(b)"]
    assert runner.events == [("start", "a"), ("end", "a"), ("start", "b"), ("end", "b")]


def test_runner_receives_document_parameters(make_prompter):
    runner = FakeRunner()
    host = InMemoryNotebook(NotebookData(metadata={"parameters": {"model": "m", "temperature": 0}}))
    _driver(runner, make_prompter()).append_and_execute(host, "hello")
    assert runner.calls[0][1] == {"model": "m", "temperature": 0}


def test_runner_failure_is_recorded_and_next_chunk_still_runs(make_prompter):
    prompter = make_prompter()
    host = InMemoryNotebook()
    produced = _driver(FailingRunner(), prompter).run_chunks(host, ["a", "b"])

    assert produced[0].value == ""
    assert produced[0].metadata == {"error": {"code": "RATE_LIMIT", "message": "slow down"}}
    assert produced[1].value == "ok"
    assert prompter.errors == ["slow down"]


def test_cancellation_stops_before_next_chunk(make_prompter):
    token = CancellationToken()
    runner = FakeRunner()
    host = InMemoryNotebook()
    driver = _driver(runner, make_prompter())

    driver.run_chunks(host, ["a"], token)
    token.cancel()
    with pytest.raises(OperationCancelled):
        driver.run_chunks(host, ["b"], token)
    assert [c.value for c in host.list_cells()] == ["a", "T(a)"]


def test_missing_document_id_has_no_side_effects(make_prompter):
    with tempfile.TemporaryDirectory() as d:
        prompter = make_prompter()
        assert _driver(FakeRunner(), prompter, root=d).create_document(None, "x") is None
        assert prompter.errors == ["Document ID is required."]
        assert prompter.input_calls == []
        assert list(Path(d).iterdir()) == []


def test_missing_workspace_aborts_before_writing(make_prompter, monkeypatch):
    monkeypatch.setattr("llm_book.infrastructure.storage.artifact_store.settings.workspace_root", None)
    prompter = make_prompter(inputs=["German"])
    driver = GenerationDriver(FakeRunner(), prompter, ArtifactStore(root=None), settings=_settings())
    assert driver.create_document("doc", "x") is None
    assert prompter.errors == ["No workspace folder found."]
    assert prompter.input_calls == []


def test_create_document_writes_timestamped_seed_file(make_prompter):
    with tempfile.TemporaryDirectory() as d:
        prompter = make_prompter(inputs=["German"])
        path = _driver(FakeRunner(), prompter, root=d).create_document("chapter1", "Hallo Welt")

        assert path is not None and path.parent == Path(d).resolve()
        assert re.fullmatch(r"chapter1-\d{8}T\d{6}Z\.llm", path.name)
        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload["parameters"] == {}
        assert [m["role"] for m in payload["messages"]] == ["system", "user"]
        assert "into German" in payload["messages"][0]["content"]
        assert payload["messages"][1]["content"] == "Hallo Welt"
        assert prompter.input_calls[0]["value"] == "French"
        assert prompter.infos == [f"New .llm file created: {path.name}"]


def test_dismissed_language_prompt_writes_nothing(make_prompter):
    with tempfile.TemporaryDirectory() as d:
        prompter = make_prompter(inputs=[None])
        assert _driver(FakeRunner(), prompter, root=d).create_document("doc", "x") is None
        assert list(Path(d).iterdir()) == []


def test_translate_runs_every_line_and_persists(make_prompter):
    with tempfile.TemporaryDirectory() as d:
        runner = FakeRunner()
        path = _driver(runner, make_prompter(), root=d).translate("doc", "one\n\ntwo", language="Spanish")

        payload = json.loads(path.read_text(encoding="utf-8"))
        roles = [m["role"] for m in payload["messages"]]
        assert roles == ["system", "user", "system", "user", "assistant", "user", "assistant"]
        contents = [m["content"] for m in payload["messages"]]
        assert contents[3:] == ["one", "T(one)", "two", "T(two)"]
        assert "into Spanish" in contents[2]
        assert len(runner.calls) == 2


def test_insert_cell_kind_is_code(make_prompter):
    host = InMemoryNotebook()
    _driver(FakeRunner(), make_prompter()).append_and_execute(host, "x")
    assert {c.kind for c in host.list_cells()} == {CellKind.CODE}
