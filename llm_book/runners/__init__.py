"""模型 Runner 集成层。

该包下的模块负责：
- 定义 Runner 抽象接口 (base)。
- 维护 Runner 默认配置 (registry)。
- 提供具体实现 (openai_runner)。
"""

from typing import Optional

from llm_book.config.settings import settings
from llm_book.domain.host import Prompter, SecretStore
from llm_book.infrastructure.storage.secret_store import FileSecretStore
from llm_book.runners.base import Runner, RunnerOutput
from llm_book.runners.openai_runner import OPENAI_SECRET_KEY, OpenAiRunner
from llm_book.runners.registry import get_runner_config


def create_runner(
    name: Optional[str] = None,
    secrets: Optional[SecretStore] = None,
    prompter: Optional[Prompter] = None,
) -> Runner:
    """根据名称创建 Runner 实例，默认取配置中的 runner。"""

    runner_name = (name or getattr(settings, "default_runner", "openai")).lower()
    cfg = get_runner_config(runner_name)
    if cfg.name == "openai":
        return OpenAiRunner(settings, secrets or FileSecretStore(), prompter)
    raise KeyError(f"Unknown runner: {runner_name!r}")


__all__ = ["OPENAI_SECRET_KEY", "OpenAiRunner", "Runner", "RunnerOutput", "create_runner"]
