"""
Translation clients.

A client turns one chunk of text into its translation. ``OpenAITranslationClient``
talks to an OpenAI chat model through LangChain; ``DryRunTranslationClient``
never touches the network.
"""
from __future__ import annotations

import abc
import logging
import os
import time
from typing import Any, Optional

import openai
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from .config import LLMConfig
from .errors import RateLimited, TranslationError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a professional translator. {instruction}. "
    "Preserve the original meaning, tone, and formatting. Maintain paragraph breaks. "
    "Do not summarize or omit any content. "
    "Only output the translation, no explanations."
)
CUSTOM_PROMPT_SUFFIX = "Preserve the original formatting and paragraph breaks. Only output the translation, no explanations."


def build_instruction(source_lang: str, target_lang: str) -> str:
    if source_lang.strip().lower() == "auto":
        return f"Translate the following text to {target_lang}"
    return f"Translate the following {source_lang} text to {target_lang}"


def build_system_prompt(source_lang: str, target_lang: str, prompt: Optional[str] = None) -> str:
    """Default prompt for the language pair, or the caller's own prompt with the output rules appended."""
    if prompt:
        return f"{prompt.strip()}\n\n{CUSTOM_PROMPT_SUFFIX}"
    return SYSTEM_PROMPT.format(instruction=build_instruction(source_lang, target_lang))


def _is_rate_limit(error: BaseException) -> bool:
    if isinstance(error, openai.RateLimitError):
        return True
    return getattr(error, "status_code", None) == 429 or getattr(error, "status", None) == 429


class TranslationClient(abc.ABC):
    # Placeholder output; jobs run with such a client use a throwaway store
    dry_run = False

    @abc.abstractmethod
    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate one chunk. Raises RateLimited or TranslationError."""


class OpenAITranslationClient(TranslationClient):
    def __init__(self, llm: Any, prompt: Optional[str] = None):
        self.llm = llm
        self.prompt = prompt

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        messages = [
            SystemMessage(content=build_system_prompt(source_lang, target_lang, self.prompt)),
            HumanMessage(content=text),
        ]
        logger.debug(f"LLM request start | input chars: {len(text)}")
        t0 = time.perf_counter()
        try:
            resp = await self.llm.ainvoke(messages)
        except Exception as e:
            dt_s = time.perf_counter() - t0
            if _is_rate_limit(e):
                raise RateLimited(f"Rate limited after {dt_s:.2f}s: {e}") from e
            raise TranslationError(str(e) or type(e).__name__) from e
        dt_s = time.perf_counter() - t0

        # LangChain AIMessage may have usage in response_metadata or .usage_metadata
        meta = getattr(resp, "response_metadata", None) or {}
        usage = meta.get("token_usage") or getattr(resp, "usage_metadata", None)
        if usage:
            logger.debug(f"LLM request success in {dt_s:.2f}s | usage: {usage}")
        else:
            logger.debug(f"LLM request success in {dt_s:.2f}s")

        content = getattr(resp, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise TranslationError("Empty response from model")
        return content.strip()


class DryRunTranslationClient(TranslationClient):
    dry_run = True

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        return f"[DRY-RUN {source_lang}->{target_lang}] {text[:100]}"


def ensure_openai_env() -> None:
    if os.getenv("OPENAI_API_KEY") is None:
        raise RuntimeError("OPENAI_API_KEY environment variable is not set.")


def build_llm(cfg: LLMConfig) -> ChatOpenAI:
    ensure_openai_env()
    kwargs = dict(
        model=cfg.model,
        max_tokens=cfg.max_tokens,
        top_p=cfg.top_p,
        frequency_penalty=cfg.frequency_penalty,
        presence_penalty=cfg.presence_penalty,
        timeout=cfg.request_timeout,
        # Retries are owned by the scheduler's backoff policy
        max_retries=0,
    )
    if cfg.reasoning_effort:
        kwargs["reasoning_effort"] = cfg.reasoning_effort
    else:
        kwargs["temperature"] = cfg.temperature
    if cfg.base_url:
        kwargs["base_url"] = cfg.base_url
    return ChatOpenAI(**kwargs)
