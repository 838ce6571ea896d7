"""宿主环境能力的协议定义。

核心逻辑不直接依赖任何编辑器/终端实现，而是依赖这些协议：

- NotebookHost: 当前打开的对话文档（cell 列表 + 文档级 metadata）。
- Prompter: 选择列表 / 输入框 / 消息提示。
- SecretStore: 按固定 key 读写凭据。

测试中使用内存实现或脚本化的假实现即可替换。
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

from .models import Cell, CellKind


@dataclass
class PickItem:
    """选择列表中的一项。"""

    label: str
    description: Optional[str] = None
    value: Any = None


# 返回错误提示文本；返回 None 表示输入合法
InputValidator = Callable[[str], Optional[str]]


class NotebookHost(Protocol):
    @property
    def cell_count(self) -> int:
        ...

    @property
    def metadata(self) -> Dict[str, Any]:
        ...

    def list_cells(self) -> List[Cell]:
        ...

    def insert_cell(self, kind: CellKind, text: str, tag: str) -> Cell:
        """在末尾追加一个 cell 并返回它。"""
        ...

    def replace_cell_text(self, index: int, text: str) -> None:
        ...

    def append_cell_text(self, index: int, text: str) -> None:
        ...

    def set_cell_metadata(self, index: int, metadata: Mapping[str, Any]) -> None:
        ...

    def update_metadata(self, metadata: Mapping[str, Any]) -> None:
        """整体替换文档级 metadata（一次事务性写入）。"""
        ...


class Prompter(Protocol):
    def pick(self, items: Sequence[PickItem], title: Optional[str] = None) -> Optional[PickItem]:
        ...

    def input_box(
        self,
        prompt: str,
        title: Optional[str] = None,
        value: Optional[str] = None,
        validate: Optional[InputValidator] = None,
        password: bool = False,
    ) -> Optional[str]:
        """返回用户输入；用户取消时返回 None。"""
        ...

    def show_error(self, message: str) -> None:
        ...

    def show_info(self, message: str) -> None:
        ...


class SecretStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def store(self, key: str, value: str) -> None:
        ...
