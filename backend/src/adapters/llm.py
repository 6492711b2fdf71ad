import os
from typing import Any, Optional

from openai import OpenAI

from adapters.base import BaseLLM
from adapters.utils import create_session_with_pooling, post_json

DEFAULT_REQUEST_TIMEOUT = 120


class OpenAILLM(BaseLLM):
    """OpenAI (or OpenAI-compatible) chat completions."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self.client = OpenAI(
            api_key=api_key or os.environ.get("OPENAI_API_KEY"),
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    def chat(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        temperature, max_tokens = self.sampling(**kwargs)
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content or ""


class OllamaLLM(BaseLLM):
    """Local Ollama chat endpoint over a pooled session."""

    def __init__(
        self,
        model: str = "llama3",
        base_url: str = "http://localhost:11434",
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = create_session_with_pooling()

    def chat(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        temperature, max_tokens = self.sampling(**kwargs)
        options: dict[str, Any] = {"temperature": temperature}
        if max_tokens:
            options["num_predict"] = max_tokens

        data = post_json(
            self.session,
            f"{self.base_url}/api/chat",
            {"model": self.model, "messages": messages, "stream": False, "options": options},
            self.timeout,
        )
        return data["message"]["content"]
