""".llm 文件的序列化层。

本模块负责三种表示之间的转换：

1. 存储字节（UTF-8 JSON，带 2 空格缩进，便于 diff）。
2. 结构化的 ConversationDocument。
3. 宿主 cell 列表（NotebookData），每条消息对应一个 code cell，
   role ⇄ language_id，content ⇄ value，参数放在文档级 metadata。

读取策略是“绝不阻塞编辑器”：空文件、非法 JSON、未知结构都回退为默认文档，
只有调用方的取消信号会以 OperationCancelled 的形式抛出。
"""

import json
from typing import Any, Dict, List, Optional

from llm_book.domain.cancellation import CancellationToken, check_cancelled
from llm_book.domain.models import (
    Cell,
    CellKind,
    ConversationDocument,
    Message,
    NotebookData,
    default_document,
)
from llm_book.infrastructure.logging.logger import logger


# cell.metadata 中保存消息额外字段的 key
CELL_META_KEY = "meta"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def strict_loads(text: str) -> Any:
    """json.loads，但拒绝 NaN / Infinity / -Infinity 这类非标准常量。"""

    return json.loads(text, parse_constant=_reject_constant)


def decode(data: bytes, cancellation: Optional[CancellationToken] = None) -> ConversationDocument:
    """把存储字节解析为 ConversationDocument。

    - 空字节：静默返回默认文档。
    - 旧格式（顶层是消息数组）：包装为 parameters={} 的文档。
    - 新格式：{"messages": [...], "parameters": {...}}，字段原样透传。
    - 其它任何无法解析的内容：记录日志并返回默认文档。
    """

    check_cancelled(cancellation)
    if not data:
        return default_document()

    try:
        payload = strict_loads(data.decode("utf-8"))
    except (ValueError, RecursionError) as e:
        # ValueError 覆盖 UnicodeDecodeError / JSONDecodeError；过深的嵌套会触发 RecursionError
        logger.error("Failed to decode conversation document", extra={"extra": {"error": str(e), "size": len(data)}})
        return default_document()

    if isinstance(payload, list):
        raw_messages, parameters = payload, {}
    elif isinstance(payload, dict):
        raw_messages = payload.get("messages") or []
        parameters = payload.get("parameters") or {}
    else:
        logger.error(
            "Unexpected conversation document payload",
            extra={"extra": {"type": type(payload).__name__}},
        )
        return default_document()

    if not isinstance(raw_messages, list) or not isinstance(parameters, dict):
        logger.error("Malformed conversation document structure", extra={"extra": {"size": len(data)}})
        return default_document()

    messages: List[Message] = []
    for entry in raw_messages:
        check_cancelled(cancellation)
        messages.append(_to_message(entry))
    return ConversationDocument(messages=messages, parameters=dict(parameters))


def encode(document: ConversationDocument) -> bytes:
    """把 ConversationDocument 编码为带缩进的 UTF-8 JSON。"""

    serialized = {
        "messages": [_message_to_payload(m) for m in document.messages],
        "parameters": document.parameters,
    }
    return json.dumps(serialized, ensure_ascii=False, indent=2).encode("utf-8")


def to_notebook(document: ConversationDocument, cancellation: Optional[CancellationToken] = None) -> NotebookData:
    """每条消息一个 code cell；消息的额外字段放在 cell.metadata["meta"]。"""

    cells: List[Cell] = []
    for m in document.messages:
        check_cancelled(cancellation)
        metadata = {CELL_META_KEY: dict(m.meta)} if m.meta else {}
        cells.append(Cell(kind=CellKind.CODE, value=m.content, language_id=m.role, metadata=metadata))
    return NotebookData(cells=cells, metadata={"parameters": dict(document.parameters)})


def from_notebook(notebook: NotebookData) -> ConversationDocument:
    """把 cell 列表还原为文档；非 code cell 直接忽略。"""

    messages = [
        Message(
            role=cell.language_id,
            content=cell.value,
            meta=dict((cell.metadata or {}).get(CELL_META_KEY) or {}),
        )
        for cell in notebook.cells
        if cell.kind == CellKind.CODE
    ]
    parameters = (notebook.metadata or {}).get("parameters") or {}
    return ConversationDocument(messages=messages, parameters=dict(parameters))


def deserialize_notebook(data: bytes, cancellation: Optional[CancellationToken] = None) -> NotebookData:
    notebook = to_notebook(decode(data, cancellation), cancellation)
    logger.info("Deserialized notebook", extra={"extra": {"cells": len(notebook.cells)}})
    return notebook


def serialize_notebook(notebook: NotebookData) -> bytes:
    return encode(from_notebook(notebook))


def _to_message(entry: Any) -> Message:
    if not isinstance(entry, dict):
        # 非对象条目按纯文本内容处理，保证不抛异常
        return Message(role="", content="" if entry is None else str(entry))
    extra = {k: v for k, v in entry.items() if k not in ("role", "content")}
    content = entry.get("content")
    return Message(
        role=entry.get("role") or "",
        content=content if isinstance(content, str) else ("" if content is None else json.dumps(content)),
        meta=extra,
    )


def _message_to_payload(message: Message) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"content": message.content, "role": message.role}
    for k, v in message.meta.items():
        payload.setdefault(k, v)
    return payload
