"""对外命令模块。

对应编辑器中的四个命令：translateDocument / translateFile /
configureParameters / updateOpenAIKey。每个函数都在自身边界捕获业务异常，
记录日志并提示用户，不会把异常抛给宿主。
"""

from pathlib import Path
from typing import Optional

from llm_book.api.console import ConsolePrompter
from llm_book.domain.cancellation import CancellationToken
from llm_book.domain.exceptions import BusinessError
from llm_book.domain.host import Prompter, SecretStore
from llm_book.generation.driver import GenerationDriver
from llm_book.infrastructure.logging.logger import logger
from llm_book.infrastructure.storage.artifact_store import ArtifactStore
from llm_book.infrastructure.storage.secret_store import FileSecretStore
from llm_book.notebook.memory_host import FileNotebookSession
from llm_book.parameters.store import ParameterStore
from llm_book.runners import OPENAI_SECRET_KEY, create_runner


TRANSLATABLE_SUFFIXES = (".txt", ".md")

_prompter: Optional[Prompter] = None
_secrets: Optional[SecretStore] = None
_driver: Optional[GenerationDriver] = None
_workspace_root: Optional[str] = None


def configure(
    prompter: Optional[Prompter] = None,
    secrets: Optional[SecretStore] = None,
    workspace_root: Optional[str] = None,
) -> None:
    """替换默认的宿主依赖（Prompter / SecretStore / 工作区目录）。"""
    global _prompter, _secrets, _driver, _workspace_root
    _prompter = prompter
    _secrets = secrets
    _workspace_root = workspace_root
    _driver = None


def get_prompter() -> Prompter:
    global _prompter
    if _prompter is None:
        _prompter = ConsolePrompter()
    return _prompter


def get_secrets() -> SecretStore:
    global _secrets
    if _secrets is None:
        _secrets = FileSecretStore()
    return _secrets


def get_default_driver() -> GenerationDriver:
    """获取默认的 GenerationDriver 实例（单例）。"""
    global _driver
    if _driver is None:
        _driver = GenerationDriver(
            runner=create_runner(secrets=get_secrets(), prompter=get_prompter()),
            prompter=get_prompter(),
            artifacts=ArtifactStore(root=_workspace_root),
        )
    return _driver


def translate_document(
    document_id: Optional[str],
    content: Optional[str] = None,
    language: Optional[str] = None,
    cancellation: Optional[CancellationToken] = None,
) -> Optional[Path]:
    """创建新的 .llm 文档（两条种子消息），返回文件路径。"""
    try:
        return get_default_driver().create_document(document_id, content, language, cancellation)
    except BusinessError as e:
        _report("Create document failed", e, document_id=document_id)
        return None


def run_translation(
    document_id: Optional[str],
    content: Optional[str],
    language: Optional[str] = None,
    cancellation: Optional[CancellationToken] = None,
) -> Optional[Path]:
    """创建文档并逐行执行翻译。"""
    try:
        return get_default_driver().translate(document_id, content, language, cancellation=cancellation)
    except BusinessError as e:
        _report("Translation failed", e, document_id=document_id)
        return None


def translate_file(path: Optional[str] = None, execute: bool = False) -> Optional[Path]:
    """读取 .txt/.md 文件，以文件名（第一个点之前）作为文档 ID。"""
    prompter = get_prompter()
    if path is None:
        path = prompter.input_box("Select a file to translate", title="Translate File")
    if not path:
        prompter.show_info("No file selected.")
        return None

    file_path = Path(path).expanduser()
    if file_path.suffix.lower() not in TRANSLATABLE_SUFFIXES:
        prompter.show_error(f"Unsupported file type: {file_path.suffix or file_path.name}")
        return None
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Read file failed: {e}", extra={"extra": {"path": str(file_path)}})
        prompter.show_error(str(e))
        return None

    document_id = file_path.name.split(".")[0]
    if execute:
        return run_translation(document_id, content)
    return translate_document(document_id, content)


def configure_parameters(path: Optional[str]) -> Optional[int]:
    """打开 .llm 文档并进入参数编辑循环，结束后保存；返回提交次数。"""
    prompter = get_prompter()
    notebook_path = Path(path).expanduser() if path else None
    artifacts = ArtifactStore(root=_workspace_root)
    if notebook_path is None or not notebook_path.is_file() or not artifacts.is_artifact(notebook_path):
        logger.error("No notebook found.", extra={"extra": {"path": path}})
        prompter.show_error("No notebook found.")
        return None
    try:
        session = FileNotebookSession(notebook_path)
        commits = ParameterStore(session, prompter).configure()
        if commits:
            session.save()
        return commits
    except BusinessError as e:
        _report("Configure parameters failed", e, path=str(notebook_path))
        return None


def update_api_key() -> Optional[str]:
    """输入并保存 OpenAI API Key；用户取消时不做任何修改。"""
    prompter = get_prompter()
    api_key = prompter.input_box("Enter OpenAI API Key", title="Enter OpenAI API Key", password=True)
    if api_key is None:
        return None
    try:
        get_secrets().store(OPENAI_SECRET_KEY, api_key)
    except BusinessError as e:
        _report("Store API key failed", e)
        return None
    return api_key


def _report(message: str, error: BusinessError, **fields) -> None:
    logger.error(f"{message}: {error.message}", extra={"extra": {"code": error.code, **fields}})
    get_prompter().show_error(error.message)
