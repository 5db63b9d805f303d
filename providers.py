"""Where AI answers come from.

``select_provider`` runs once at startup: with a real OpenAI key the app
talks to the chat-completions API, otherwise every answer comes from the
deterministic templates in ``insights``.
"""

import logging
from typing import List, Optional, Sequence

from openai import OpenAI

import config
from insights import (
    build_analysis_prompt,
    build_chat_system_prompt,
    offline_insight,
    offline_reply,
)

logger = logging.getLogger(__name__)

HISTORY_TURNS = 10
ANALYZE_MAX_TOKENS = 300
CHAT_MAX_TOKENS = 500
TEMPERATURE = 0.7

EMPTY_ANALYSIS = "Không thể phân tích lúc này."
EMPTY_CHAT = "Xin lỗi, mình không thể trả lời lúc này."


def last_user_message(messages: Sequence[dict]) -> str:
    for m in reversed(messages or []):
        if m.get("role") == "user":
            return m.get("content") or ""
    return ""


class CompletionProvider:
    """Produces the analysis card text and chat replies."""

    is_live = False

    def analyze(self, profile, rows) -> str:
        raise NotImplementedError

    def chat(self, profile, rows, messages: List[dict]) -> str:
        raise NotImplementedError


class DeterministicFallbackProvider(CompletionProvider):
    def analyze(self, profile, rows) -> str:
        return offline_insight(profile, rows)

    def chat(self, profile, rows, messages: List[dict]) -> str:
        return offline_reply(last_user_message(messages), profile, rows)


class LiveCompletionProvider(CompletionProvider):
    """OpenAI chat completions. Errors are left for the caller to handle."""

    is_live = True

    def __init__(self, api_key: str, model: str = config.OPENAI_MODEL, client=None):
        self.model = model
        self.client = client or OpenAI(api_key=api_key)

    def _complete(self, messages: List[dict], max_tokens: int) -> Optional[str]:
        completion = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=TEMPERATURE,
        )
        if not completion.choices:
            return None
        return completion.choices[0].message.content

    def analyze(self, profile, rows) -> str:
        prompt = build_analysis_prompt(profile, rows)
        content = self._complete([{"role": "user", "content": prompt}], ANALYZE_MAX_TOKENS)
        return content or EMPTY_ANALYSIS

    def chat(self, profile, rows, messages: List[dict]) -> str:
        history = [
            {"role": m["role"], "content": m["content"]}
            for m in (messages or [])[-HISTORY_TURNS:]
        ]
        chat_messages = [{"role": "system", "content": build_chat_system_prompt(profile, rows)}] + history
        content = self._complete(chat_messages, CHAT_MAX_TOKENS)
        return content or EMPTY_CHAT


def select_provider(api_key: Optional[str] = None, model: Optional[str] = None) -> CompletionProvider:
    key = config.OPENAI_API_KEY if api_key is None else api_key
    if config.ai_key_configured(key):
        logger.info("AI replies via OpenAI model %s", model or config.OPENAI_MODEL)
        return LiveCompletionProvider(key.strip(), model=model or config.OPENAI_MODEL)
    logger.info("No OpenAI key configured; using offline replies")
    return DeterministicFallbackProvider()
