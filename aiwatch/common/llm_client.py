"""
Provider-agnostic LLM client for AIWatch.

One prompt in, one completion out, for OpenAI, Anthropic or Google Gemini.
The summarizer's relevance oracle is the only caller; it handles every
failure this client raises.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger("aiwatch.common.llm_client")


def _openai_client(api_key: str):
    from openai import OpenAI

    return OpenAI(api_key=api_key)


def _anthropic_client(api_key: str):
    import anthropic

    return anthropic.Anthropic(api_key=api_key)


def _google_client(api_key: str):
    import google.generativeai as genai

    genai.configure(api_key=api_key)
    return genai  # module handle; models are built per system prompt


_FACTORIES = {
    "openai": _openai_client,
    "anthropic": _anthropic_client,
    "google": _google_client,
}


class LLMClient:
    """Text generation across LLM providers behind a single generate() call."""

    def __init__(
        self,
        provider: str = "openai",
        model: str = "",
        anthropic_api_key: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        google_api_key: Optional[str] = None,
    ) -> None:
        self.provider = (provider or "openai").lower()
        self.model = model
        self._client: Any = None
        self._gemini_models: Dict[str, Any] = {}

        factory = _FACTORIES.get(self.provider)
        if factory is None:
            logger.warning("Unsupported LLM provider: %s", self.provider)
            return

        api_key = {
            "openai": openai_api_key,
            "anthropic": anthropic_api_key,
            "google": google_api_key,
        }[self.provider]
        if not api_key:
            logger.info("%s API key not provided, LLM client unavailable", self.provider)
            return

        try:
            self._client = factory(api_key)
        except ImportError as e:
            logger.warning("SDK for %s is not installed: %s", self.provider, e)
        except Exception as e:
            logger.warning("Failed to initialize %s client: %s", self.provider, e)

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: int = 500,
        temperature: float = 0.3,
        timeout: float = 30.0,
    ) -> str:
        """
        Complete a single user prompt.

        Raises:
            RuntimeError: Client not available (missing key or package)
            Exception: Whatever the provider SDK raises, timeouts included
        """
        if not self.is_available:
            raise RuntimeError("LLM client is not available")

        call = getattr(self, f"_generate_{self.provider}")
        text = call(prompt, system, max_tokens, temperature, timeout)
        return (text or "").strip()

    def _generate_openai(self, prompt, system, max_tokens, temperature, timeout) -> str:
        messages = [{"role": "user", "content": prompt}]
        if system:
            messages.insert(0, {"role": "system", "content": system})
        response = self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            timeout=timeout,
        )
        return response.choices[0].message.content

    def _generate_anthropic(self, prompt, system, max_tokens, temperature, timeout) -> str:
        extra = {"system": system} if system else {}
        response = self._client.messages.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
            temperature=temperature,
            timeout=timeout,
            **extra,
        )
        return response.content[0].text

    def _generate_google(self, prompt, system, max_tokens, temperature, timeout) -> str:
        key = hashlib.md5((system or "").encode()).hexdigest()
        model = self._gemini_models.get(key)
        if model is None:
            options = {"model_name": self.model}
            if system:
                options["system_instruction"] = system
            model = self._gemini_models[key] = self._client.GenerativeModel(**options)
        response = model.generate_content(
            prompt,
            generation_config={"max_output_tokens": max_tokens, "temperature": temperature},
            request_options={"timeout": timeout},
        )
        return response.text
