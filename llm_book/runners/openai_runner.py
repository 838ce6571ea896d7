"""OpenAI 兼容 Runner。

本模块负责：

1. 从 SecretStore 读取 API Key（缺失时通过 Prompter 询问一次并保存）。
2. 把对话历史 + 文档参数转换为 chat/completions 请求。
3. 调用 HTTP 接口并处理网络/API 异常。
4. 返回完整文本，或在流式模式下逐段产出文本增量。
"""

import json
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence

import httpx

from llm_book.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from llm_book.domain.host import Prompter, SecretStore
from llm_book.domain.models import Message
from llm_book.infrastructure.logging.logger import logger
from llm_book.runners.base import RunnerOutput
from llm_book.runners.registry import OPENAI_CONFIG


OPENAI_SECRET_KEY = "ai-book.openAI.apiKey"


class OpenAiRunner:
    """OpenAI chat/completions Runner 实现。

    - name: Runner 名称（供日志使用）。
    - generate: 对外统一调用入口。
    """

    name = "openai"

    def __init__(self, settings, secrets: SecretStore, prompter: Optional[Prompter] = None):
        # Settings 里包含 base_url、超时、默认模型等配置；凭据只从 secrets 读取
        self._settings = settings
        self._secrets = secrets
        self._prompter = prompter

    def generate(self, history: Sequence[Message], parameters: Mapping[str, Any]) -> RunnerOutput:
        """生成下一条 assistant 内容。

        parameters 中的 "stream" 决定返回字符串还是增量迭代器；
        其余参数原样合并进请求体，覆盖默认的 model/temperature。
        """

        api_key = self._api_key()
        params = dict(parameters)
        stream = bool(params.pop("stream", getattr(self._settings, "stream_responses", False)))
        payload = self._build_payload(history, params, stream)
        logger.info(
            "Calling runner",
            extra={"extra": {"runner": self.name, "model": payload["model"], "message_count": len(history), "stream": stream}},
        )
        if stream:
            return self._stream(payload, api_key)
        return self._complete(payload, api_key)

    def _api_key(self) -> str:
        key = self._secrets.get(OPENAI_SECRET_KEY)
        if not key and self._prompter is not None:
            entered = self._prompter.input_box("Enter OpenAI API Key", title="OpenAI API Key", password=True)
            if entered:
                self._secrets.store(OPENAI_SECRET_KEY, entered)
                key = entered
        if not key:
            # 凭据缺失走 ValidationError，方便上层统一提示
            raise ValidationError(code="MISSING_API_KEY", message="OpenAI API key not set")
        return key

    def _base_url(self) -> str:
        return (getattr(self._settings, "openai_base_url", None) or OPENAI_CONFIG.base_url).rstrip("/")

    def _headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def _complete(self, payload: Dict[str, Any], api_key: str) -> str:
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(
                    f"{self._base_url()}/chat/completions",
                    json=payload,
                    headers=self._headers(api_key),
                )
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
        self._raise_for_status(resp)
        data = resp.json()
        choices = data.get("choices") or []
        if not choices:
            return ""
        message = choices[0].get("message") or {}
        return message.get("content") or ""

    def _stream(self, payload: Dict[str, Any], api_key: str) -> Iterator[str]:
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                with client.stream(
                    "POST",
                    f"{self._base_url()}/chat/completions",
                    json=payload,
                    headers=self._headers(api_key),
                ) as resp:
                    if resp.status_code >= 400:
                        resp.read()
                    self._raise_for_status(resp)
                    for line in resp.iter_lines():
                        delta = self._parse_stream_line(line)
                        if delta:
                            yield delta
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))

    @staticmethod
    def _raise_for_status(resp) -> None:
        if resp.status_code == 429:
            # 限流错误不自动重试，由用户重新执行该 turn
            raise RateLimitError(code="RATE_LIMIT", message="OpenAI rate limit")
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)

    @staticmethod
    def _parse_stream_line(line: str) -> str:
        """解析一行 SSE 数据，返回其中的文本增量（没有则返回空串）。"""

        if not line:
            return ""
        data_str = line[5:].strip() if line.startswith("data:") else line.strip()
        if not data_str or data_str == "[DONE]":
            return ""
        try:
            chunk = json.loads(data_str)
        except json.JSONDecodeError:
            return ""
        choices = chunk.get("choices") or []
        if not choices:
            return ""
        delta = choices[0].get("delta") or {}
        return delta.get("content") or ""

    def _build_payload(self, history: Sequence[Message], params: Dict[str, Any], stream: bool) -> Dict[str, Any]:
        """默认值 < 文档参数；messages 与 stream 总是由 Runner 决定。"""

        model = getattr(self._settings, "openai_model", None) or OPENAI_CONFIG.default_model
        temperature = getattr(self._settings, "openai_temperature", None)
        payload: Dict[str, Any] = {
            "model": model,
            "temperature": OPENAI_CONFIG.default_temperature if temperature is None else temperature,
        }
        payload.update(params)
        payload["messages"] = [{"role": m.role, "content": m.content} for m in history]
        payload["stream"] = stream
        return payload
