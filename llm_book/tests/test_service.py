import io
import json
import tempfile
from pathlib import Path

import pytest

from llm_book.api import service
from llm_book.api.console import ConsolePrompter
from llm_book.domain.host import PickItem
from llm_book.parameters.store import NEW_PARAMETER_LABEL
from llm_book.runners import OPENAI_SECRET_KEY


@pytest.fixture
def workspace():
    with tempfile.TemporaryDirectory() as d:
        yield Path(d).resolve()
    service.configure()


def _use(prompter, secrets, root):
    service.configure(prompter=prompter, secrets=secrets, workspace_root=str(root))
    return prompter


def test_translate_file_uses_name_before_first_dot(workspace, make_prompter, secrets):
    source = workspace / "chapter.one.txt"
    source.write_text("line one\nline two\n", encoding="utf-8")
    prompter = _use(make_prompter(inputs=["Italian"]), secrets, workspace)

    path = service.translate_file(str(source))
    assert path is not None and path.name.startswith("chapter-")
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["messages"][1]["content"] == "line one\nline two\n"
    assert "into Italian" in payload["messages"][0]["content"]
    assert prompter.errors == []


def test_translate_file_without_selection(workspace, make_prompter, secrets):
    prompter = _use(make_prompter(inputs=[""]), secrets, workspace)
    assert service.translate_file() is None
    assert prompter.infos == ["No file selected."]


def test_translate_file_rejects_other_types(workspace, make_prompter, secrets):
    source = workspace / "data.csv"
    source.write_text("a,b", encoding="utf-8")
    prompter = _use(make_prompter(), secrets, workspace)
    assert service.translate_file(str(source)) is None
    assert prompter.errors == ["Unsupported file type: .csv"]
    assert prompter.input_calls == []


def test_update_api_key_stores_secret(workspace, make_prompter, secrets):
    prompter = _use(make_prompter(inputs=["sk-new"]), secrets, workspace)
    assert service.update_api_key() == "sk-new"
    assert secrets.get(OPENAI_SECRET_KEY) == "sk-new"
    assert prompter.input_calls[0]["password"] is True


def test_update_api_key_dismissed_leaves_store_untouched(workspace, make_prompter, secrets):
    secrets.store(OPENAI_SECRET_KEY, "sk-old")
    _use(make_prompter(inputs=[None]), secrets, workspace)
    assert service.update_api_key() is None
    assert secrets.get(OPENAI_SECRET_KEY) == "sk-old"


def test_configure_parameters_without_notebook(workspace, make_prompter, secrets):
    prompter = _use(make_prompter(), secrets, workspace)
    assert service.configure_parameters(None) is None
    assert service.configure_parameters(str(workspace / "missing.llm")) is None
    other = workspace / "notes.json"
    other.write_text("{}", encoding="utf-8")
    assert service.configure_parameters(str(other)) is None
    assert prompter.errors == ["No notebook found."] * 3
    assert prompter.pick_calls == []


def test_configure_parameters_saves_commits(workspace, make_prompter, secrets):
    notebook = workspace / "doc.llm"
    notebook.write_text('{"messages": [{"role": "user", "content": "hi"}]}', encoding="utf-8")
    prompter = _use(
        make_prompter(picks=[NEW_PARAMETER_LABEL, None], inputs=["temperature", "0.2"]),
        secrets,
        workspace,
    )

    assert service.configure_parameters(str(notebook)) == 1
    payload = json.loads(notebook.read_text(encoding="utf-8"))
    assert payload == {
        "messages": [{"content": "hi", "role": "user"}],
        "parameters": {"temperature": 0.2},
    }
    assert prompter.errors == []


def test_console_prompter_pick_and_prefilled_input():
    out = io.StringIO()
    prompter = ConsolePrompter(stdin=io.StringIO("2\n\nbad {\n5\n"), stdout=out)
    items = [PickItem(label="a"), PickItem(label="b")]
    assert prompter.pick(items, title="T").label == "b"
    assert prompter.input_box("value", value="3") == "3"
    validate = lambda text: "nope" if "{" in text else None
    assert prompter.input_box("value", validate=validate) == "5"
    assert "nope" in out.getvalue()
    assert prompter.pick(items) is None
