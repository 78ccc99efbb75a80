from __future__ import annotations

import logging
import os
from typing import Optional, Protocol

from openai import OpenAI

from railgraph.config.settings import BackendConfig
from railgraph.errors import ConfigError

logger = logging.getLogger("railgraph.oracles")


class GenerationBackend(Protocol):
    """
    Mandatory text generation backend.

    Any implementation MUST:
    - accept a prompt string
    - return generated text
    - raise on transport or model failure
    """

    def generate(self, prompt: str) -> str: ...


class OpenAIBackend:
    """
    Chat completions backend for any OpenAI-compatible endpoint.

    Groq and Gemini both expose one; point ``base_url`` at it.
    Replies are requested in JSON mode.
    """

    def __init__(
        self,
        *,
        model: str,
        api_key: str,
        base_url: Optional[str] = None,
        max_tokens: int = 512,
        temperature: float = 0.2,
    ) -> None:
        self.client = OpenAI(api_key=api_key, base_url=base_url)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    def generate(self, prompt: str) -> str:
        completion = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            response_format={"type": "json_object"},
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        return (completion.choices[0].message.content or "").strip()


def build_backend(config: BackendConfig) -> GenerationBackend:
    if config.kind == "huggingface":
        from railgraph.oracles.hf_backend import HuggingFaceBackend

        logger.info("loading HuggingFace backend %s", config.model)
        return HuggingFaceBackend(
            model_name=config.model,
            hf_token=config.api_key,
            max_new_tokens=config.max_new_tokens,
            temperature=config.temperature,
        )

    if config.kind == "openai":
        api_key = config.api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ConfigError(f"no API key configured for model {config.model}")
        return OpenAIBackend(
            model=config.model,
            api_key=api_key,
            base_url=config.base_url,
            max_tokens=config.max_new_tokens,
            temperature=config.temperature,
        )

    raise ConfigError(f"unknown backend kind {config.kind!r}")
