# flowshape/providers.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


@dataclass(frozen=True)
class AIProvider:
    value: str
    label: str
    base_url: str
    provider: str


AI_PROVIDERS: Tuple[AIProvider, ...] = (
    AIProvider("gpt-5.2", "GPT-5.2", OPENAI_CHAT_URL, "OpenAI"),
    AIProvider("gpt-5-mini", "GPT-5 Mini", OPENAI_CHAT_URL, "OpenAI"),
    AIProvider("gpt-5-nano", "GPT-5 Nano", OPENAI_CHAT_URL, "OpenAI"),
    AIProvider("claude-opus-4.6", "Claude Opus 4.6", ANTHROPIC_MESSAGES_URL, "Anthropic"),
    AIProvider("claude-sonnet-4-6", "Claude Sonnet 4.6", ANTHROPIC_MESSAGES_URL, "Anthropic"),
    AIProvider("claude-haiku-4-5", "Claude Haiku 4.5", ANTHROPIC_MESSAGES_URL, "Anthropic"),
    AIProvider("gemini-2.5-flash-lite", "Gemini 2.5 Flash Lite",
               GEMINI_URL.format(model="gemini-2.5-flash-lite"), "Google"),
    AIProvider("gemini-3-pro-preview", "Gemini 3 Pro",
               GEMINI_URL.format(model="gemini-3-pro-preview"), "Google"),
    AIProvider("gemini-3-flash-preview", "Gemini 3 Flash",
               GEMINI_URL.format(model="gemini-3-flash-preview"), "Google"),
)


def get_provider(value: str) -> Optional[AIProvider]:
    for p in AI_PROVIDERS:
        if p.value == value:
            return p
    return None


def providers_by_vendor(provider: str) -> Tuple[AIProvider, ...]:
    """Case-insensitive filter on the vendor name, registry order kept."""
    wanted = provider.lower()
    return tuple(p for p in AI_PROVIDERS if p.provider.lower() == wanted)
