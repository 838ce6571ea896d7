"""Runner 抽象接口。

GenerationDriver 不直接依赖具体模型厂商的 HTTP API，而是依赖此协议：

- 每个厂商实现一个 Runner（如 OpenAiRunner）。
- generate 接收截至当前的对话历史与文档参数，返回完整文本，
  或者一个逐段产出文本增量的迭代器（流式）。

这样可以在不改 Driver 代码的前提下接入更多模型，测试中也可以直接换成假 Runner。
"""

from typing import Any, Iterable, Mapping, Protocol, Sequence, Union

from llm_book.domain.models import Message


RunnerOutput = Union[str, Iterable[str]]


class Runner(Protocol):
    """模型 Runner 协议。

    实现者需要提供：
    - name: Runner 名称，用于日志。
    - generate(history, parameters): 生成下一条 assistant 内容。
    """

    name: str

    def generate(self, history: Sequence[Message], parameters: Mapping[str, Any]) -> RunnerOutput:
        ...
