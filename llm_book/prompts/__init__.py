"""系统提示词模板。

翻译场景的 system 指令按目标语言(language) 生成，用于构造 Message(role="system")。
未指定语言时退回到种子文档使用的通用指令。
"""

from typing import Optional

from llm_book.domain.models import DEFAULT_SYSTEM_PROMPT


TRANSLATOR_TEMPLATE = (
    "You are a translator. You will translate the content provided into {language} "
    "and return it as valid markdown"
)


def translator_prompt(language: Optional[str] = None) -> str:
    """根据目标语言生成翻译指令。"""

    if not language:
        return DEFAULT_SYSTEM_PROMPT
    return TRANSLATOR_TEMPLATE.format(language=language)
