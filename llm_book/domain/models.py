"""对话文档与 Notebook 视图的数据模型。

- Message: 一条对话消息（一个 turn），如 system/user/assistant。
- ConversationDocument: 有序消息列表 + 自由格式的参数映射，是 .llm 文件的结构化形式。
- Cell / NotebookData: 宿主编辑器的 cell 列表视图，每条 Message 对应一个 code cell。

序列化（bytes ⇄ ConversationDocument ⇄ NotebookData）见 llm_book.notebook.serializer。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# role 字段不做封闭集合校验（通常为 system/user/assistant）
Role = str

DEFAULT_SYSTEM_PROMPT = (
    "You are a translator. You will translate the content provided and return it as valid markdown"
)
DEFAULT_USER_PLACEHOLDER = "Insert translation content here"


@dataclass(frozen=True)
class Message:
    """一条对话消息。

    - role: 消息角色，通常为 system/user/assistant，但不限定取值。
    - content: 纯文本内容。
    - meta: 存储文件中该条目携带的其它字段，原样写回；在 cell 视图中保存在 cell.metadata["meta"]。
    """

    role: Role
    content: str
    meta: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass
class ConversationDocument:
    """结构化的对话文档。

    messages 的顺序即对话顺序，与宿主 cell 顺序一一对应；
    parameters 为 JSON 值映射，用于配置 Runner（model、temperature 等）。
    """

    messages: List[Message] = field(default_factory=list)
    parameters: Dict[str, Any] = field(default_factory=dict)


class CellKind(str, Enum):
    """宿主 cell 类型，只有 CODE 类型参与对话文档的往返。"""

    MARKUP = "markup"
    CODE = "code"


@dataclass
class Cell:
    kind: CellKind
    value: str
    language_id: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class NotebookData:
    """宿主侧的 cell 列表；metadata["parameters"] 保存整份文档的参数。"""

    cells: List[Cell] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


def default_document(content: Optional[str] = None, system_prompt: Optional[str] = None) -> ConversationDocument:
    """构造两条种子消息（system 指令 + user 内容）组成的默认文档。"""

    return ConversationDocument(
        messages=[
            Message(role="system", content=system_prompt or DEFAULT_SYSTEM_PROMPT),
            Message(role="user", content=content if content is not None else DEFAULT_USER_PLACEHOLDER),
        ],
        parameters={},
    )
