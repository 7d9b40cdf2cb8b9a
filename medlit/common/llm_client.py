"""
Provider-agnostic LLM client for medlit pipelines.

Supports Anthropic, OpenAI (and OpenAI-compatible endpoints), and Google
Gemini behind one text-completion interface.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from .config import LLMConfig
from .context import CallContext, ensure_context

logger = logging.getLogger("medlit.common.llm_client")


class Completer(Protocol):
    """Anything that can turn a prompt into text.

    The QA and synthesis pipelines depend only on this method.
    """

    def complete(self, prompt: str, max_tokens: int, ctx: Optional[CallContext] = None) -> str:
        ...


class LLMClient:
    """Unified text completion client across LLM providers."""

    def __init__(
        self,
        provider: str = "openai",
        model: str = "",
        anthropic_api_key: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        google_api_key: Optional[str] = None,
        openai_base_url: Optional[str] = None,
        timeout: float = 60.0,
    ) -> None:
        self.provider = (provider or "openai").lower()
        self.model = model
        self.timeout = timeout
        self._client = None

        if self.provider == "anthropic":
            if not anthropic_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import anthropic

                self._client = anthropic.Anthropic(api_key=anthropic_api_key)
            except ImportError:
                logger.warning("anthropic package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Anthropic client: %s", e)
            return

        if self.provider == "openai":
            if not openai_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                from openai import OpenAI

                kwargs = {"api_key": openai_api_key}
                if openai_base_url:
                    kwargs["base_url"] = openai_base_url
                self._client = OpenAI(**kwargs)
            except ImportError:
                logger.warning("openai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize OpenAI client: %s", e)
            return

        if self.provider == "google":
            if not google_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import google.generativeai as genai

                genai.configure(api_key=google_api_key)
                self._client = genai.GenerativeModel(model_name=self.model)
            except ImportError:
                logger.warning("google-generativeai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Gemini client: %s", e)
            return

        logger.warning("Unsupported LLM provider: %s", self.provider)

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def complete(self, prompt: str, max_tokens: int, ctx: Optional[CallContext] = None) -> str:
        """Single-turn completion at temperature 0, honouring the caller's context.

        Args:
            prompt: Full prompt text
            max_tokens: Output token cap
            ctx: Cancellation/deadline signal; its remaining time caps the request timeout

        Returns:
            Response text, stripped

        Raises:
            RuntimeError: no usable provider client (missing key or SDK)
            OperationCancelled: ctx was cancelled before or during the call
        """
        if not self.is_available:
            raise RuntimeError("LLM client is not available")
        ctx = ensure_context(ctx)
        ctx.raise_if_done()
        timeout = ctx.remaining(default=self.timeout)

        if self.provider == "anthropic":
            response = self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=0,
                messages=[{"role": "user", "content": prompt}],
                timeout=timeout,
            )
            text = response.content[0].text
        elif self.provider == "openai":
            response = self._client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=0,
                messages=[{"role": "user", "content": prompt}],
                timeout=timeout,
            )
            text = response.choices[0].message.content or ""
        else:
            response = self._client.generate_content(
                prompt,
                generation_config={"max_output_tokens": max_tokens, "temperature": 0},
                request_options={"timeout": timeout},
            )
            text = response.text

        # A response that arrives after cancellation is discarded
        ctx.raise_if_done()
        return text.strip()


def create_llm_client(config: LLMConfig) -> LLMClient:
    """Build an LLMClient for the configured provider."""
    return LLMClient(
        provider=config.provider,
        model=config.model,
        anthropic_api_key=config.anthropic_api_key or None,
        openai_api_key=config.openai_api_key or None,
        google_api_key=config.google_api_key or None,
        openai_base_url=config.openai_base_url or None,
        timeout=config.timeout,
    )
