"""Terminal implementation of the Prompter protocol."""

from __future__ import annotations

import getpass
import sys
from typing import Callable, Optional, Sequence, TextIO

from llm_book.domain.host import InputValidator, PickItem


class ConsolePrompter:
    """Numbered pick lists and line input on stdin/stdout.

    An empty answer to a pick list, or EOF anywhere, counts as dismissing it.
    """

    def __init__(
        self,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        secret_input: Callable[[str], str] = getpass.getpass,
    ):
        self._in = stdin or sys.stdin
        self._out = stdout or sys.stdout
        self._secret_input = secret_input

    def pick(self, items: Sequence[PickItem], title: Optional[str] = None) -> Optional[PickItem]:
        if title:
            self._write(title)
        for i, item in enumerate(items, 1):
            line = f"  {i}. {item.label}"
            if item.description:
                line += f"  {item.description}"
            self._write(line)
        while True:
            answer = self._readline("Select: ")
            if not answer:
                return None
            if answer.isdigit() and 1 <= int(answer) <= len(items):
                return items[int(answer) - 1]
            self._write(f"Enter a number between 1 and {len(items)}.")

    def input_box(
        self,
        prompt: str,
        title: Optional[str] = None,
        value: Optional[str] = None,
        validate: Optional[InputValidator] = None,
        password: bool = False,
    ) -> Optional[str]:
        if title:
            self._write(title)
        suffix = f" [{value}]" if value is not None and not password else ""
        while True:
            try:
                if password:
                    answer = self._secret_input(f"{prompt}: ")
                else:
                    answer = self._readline(f"{prompt}{suffix}: ")
            except EOFError:
                return None
            if answer is None:
                return None
            # an empty line keeps the pre-filled value
            if answer == "" and value is not None:
                answer = value
            error = validate(answer) if validate else None
            if error is None:
                return answer
            self._write(error)

    def show_error(self, message: str) -> None:
        self._write(f"error: {message}")

    def show_info(self, message: str) -> None:
        self._write(message)

    def _readline(self, prompt: str) -> Optional[str]:
        self._out.write(prompt)
        self._out.flush()
        line = self._in.readline()
        if not line:
            return None
        return line.rstrip("\n")

    def _write(self, text: str) -> None:
        self._out.write(text + "\n")
        self._out.flush()
