"""Runner 默认配置。

文档参数（parameters）可以覆盖这里的任意默认值，例如 {"model": "gpt-4o"}；
未覆盖时使用此处集中配置的模型与温度，便于后续升级或切换。"""

from dataclasses import dataclass
from typing import Mapping


@dataclass
class RunnerConfig:
    """单个 Runner 的默认配置。"""

    name: str
    base_url: str
    default_model: str
    default_temperature: float


OPENAI_CONFIG = RunnerConfig(
    name="openai",
    base_url="https://api.openai.com/v1",
    default_model="gpt-4o-mini",
    default_temperature=0.3,
)


RUNNER_REGISTRY: Mapping[str, RunnerConfig] = {
    "openai": OPENAI_CONFIG,
}


def get_runner_config(name: str) -> RunnerConfig:
    """根据名称获取 RunnerConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in RUNNER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown runner: {name!r}")
