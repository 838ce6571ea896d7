"""llm-book 顶层包。

该包提供可编辑对话文档（.llm 文件）的核心实现，
包括配置加载、领域模型、序列化、参数编辑、
Runner 适配与逐段翻译的生成驱动等能力。
"""

from llm_book.domain.models import ConversationDocument, Message
from llm_book.generation.driver import GenerationDriver

__all__ = ["ConversationDocument", "GenerationDriver", "Message"]
