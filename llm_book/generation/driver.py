"""Translation workflow: create the .llm artifact, then append and execute turns.

Execution is strictly sequential: a chunk's user turn is appended, the runner
is invoked on the history so far, and its output is fully written before the
next chunk is looked at.
"""

import time
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from llm_book.config.settings import Settings, settings as default_settings
from llm_book.domain.cancellation import CancellationToken, check_cancelled
from llm_book.domain.exceptions import BusinessError, MissingInputError, OperationCancelled
from llm_book.domain.host import NotebookHost, Prompter
from llm_book.domain.models import Cell, CellKind, Message, default_document
from llm_book.infrastructure.logging.logger import logger
from llm_book.infrastructure.storage.artifact_store import ArtifactStore
from llm_book.notebook.memory_host import FileNotebookSession
from llm_book.prompts import translator_prompt
from llm_book.runners.base import Runner


def split_chunks(content: Optional[str]) -> List[str]:
    """Split content into one chunk per line; blank lines are kept and skipped later."""

    if not content:
        return []
    return content.splitlines()


def history_from_cells(cells: Sequence[Cell]) -> List[Message]:
    return [Message(role=c.language_id, content=c.value) for c in cells if c.kind == CellKind.CODE]


class GenerationDriver:
    def __init__(
        self,
        runner: Runner,
        prompter: Prompter,
        artifacts: Optional[ArtifactStore] = None,
        settings: Optional[Settings] = None,
    ):
        self._runner = runner
        self._prompter = prompter
        self._settings = settings or default_settings
        self._artifacts = artifacts or ArtifactStore(extension=self._settings.artifact_extension)

    def _prepare(self, document_id: Optional[str], language: Optional[str]) -> Optional[str]:
        """Check the required inputs in order (id, workspace, language); None aborts."""

        if not document_id:
            self._prompter.show_error("Document ID is required.")
            return None
        try:
            self._artifacts.require_root()
        except MissingInputError as e:
            logger.warning(e.message, extra={"extra": {"document_id": document_id}})
            self._prompter.show_error(e.message)
            return None
        return self.resolve_language(language) or None

    def resolve_language(self, language: Optional[str] = None) -> Optional[str]:
        if language:
            return language
        return self._prompter.input_box(
            "Enter target language",
            title="Translate Document",
            value=self._settings.default_language,
        )

    def create_document(
        self,
        document_id: Optional[str],
        content: Optional[str] = None,
        language: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Optional[Path]:
        """Write a fresh seed document to ``{root}/{id}-{timestamp}.{ext}``.

        Returns None (after telling the user) when the id or the workspace
        folder is missing, or when the language prompt is dismissed.
        """

        language = self._prepare(document_id, language)
        if language is None:
            return None
        return self._write_seed(document_id, content, language, cancellation)

    def _write_seed(
        self,
        document_id: str,
        content: Optional[str],
        language: str,
        cancellation: Optional[CancellationToken],
    ) -> Path:
        check_cancelled(cancellation)
        document = default_document(content, system_prompt=translator_prompt(language))
        path = self._artifacts.write_new(document_id, document)
        logger.info(
            "Created conversation document",
            extra={"extra": {"document_id": document_id, "path": str(path), "language": language}},
        )
        self._prompter.show_info(f"New .{self._artifacts.extension} file created: {path.name}")
        return path

    def translate(
        self,
        document_id: Optional[str],
        content: Optional[str],
        language: Optional[str] = None,
        chunks: Optional[Iterable[str]] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Optional[Path]:
        """Create the artifact, then translate *content* chunk by chunk inside it."""

        language = self._prepare(document_id, language)
        if language is None:
            return None
        path = self._write_seed(document_id, content, language, cancellation)

        session = FileNotebookSession(path, cancellation)
        session.insert_cell(CellKind.CODE, translator_prompt(language), "system")
        session.save()
        try:
            self.run_chunks(
                session,
                chunks if chunks is not None else split_chunks(content),
                cancellation,
                on_turn=lambda _cell: session.save(),
            )
        except OperationCancelled:
            logger.info("Translation cancelled", extra={"extra": {"path": str(path)}})
        finally:
            session.save()
        return path

    def run_chunks(
        self,
        host: NotebookHost,
        chunks: Iterable[str],
        cancellation: Optional[CancellationToken] = None,
        on_turn: Optional[Callable[[Cell], None]] = None,
    ) -> List[Cell]:
        """Append and execute every non-blank chunk, one after another."""

        produced: List[Cell] = []
        for chunk in chunks:
            check_cancelled(cancellation)
            cell = self.append_and_execute(host, chunk, cancellation)
            if cell is not None:
                produced.append(cell)
                if on_turn is not None:
                    on_turn(cell)
        return produced

    def append_and_execute(
        self,
        host: NotebookHost,
        text: Optional[str],
        cancellation: Optional[CancellationToken] = None,
    ) -> Optional[Cell]:
        if not text or not text.strip():
            return None
        host.insert_cell(CellKind.CODE, text, "user")
        return self.execute(host, cancellation)

    def execute(self, host: NotebookHost, cancellation: Optional[CancellationToken] = None) -> Cell:
        """Run the runner on the current history and write its output into a new assistant cell.

        Runner failures are logged and recorded on the cell; they never propagate.
        Cancellation does propagate, after the partial output has been kept.
        """

        history = history_from_cells(host.list_cells())
        parameters: Dict[str, Any] = dict(host.metadata.get("parameters") or {})
        host.insert_cell(CellKind.CODE, "", "assistant")
        index = host.cell_count - 1
        log_ctx = {"runner": getattr(self._runner, "name", "runner"), "cell_index": index}

        start = time.time()
        try:
            output = self._runner.generate(history, parameters)
            if isinstance(output, str):
                host.replace_cell_text(index, output)
            else:
                for piece in output:
                    check_cancelled(cancellation)
                    if piece:
                        host.append_cell_text(index, piece)
        except OperationCancelled:
            raise
        except BusinessError as e:
            self._record_failure(host, index, e.code, e.message, log_ctx)
        except Exception as e:  # noqa: BLE001
            self._record_failure(host, index, "RUNNER_ERROR", str(e), log_ctx)
        else:
            logger.info(
                "Executed turn",
                extra={"extra": {**log_ctx, "elapsed_seconds": round(time.time() - start, 2)}},
            )
        return host.list_cells()[index]

    def _record_failure(self, host: NotebookHost, index: int, code: str, message: str, log_ctx: Dict[str, Any]) -> None:
        logger.error("Runner failed", extra={"extra": {**log_ctx, "code": code, "error": message}})
        host.set_cell_metadata(index, {"error": {"code": code, "message": message}})
        self._prompter.show_error(message)
