"""AI reply generation via OpenRouter or Google Gemini."""

from __future__ import annotations

import asyncio
import json
import logging
import os

import requests

from whatsapp_autoreply.config import AIConfig

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

DEFAULT_MODELS = {
    "openrouter": "google/gemini-2.0-flash-exp:free",
    "google": "gemini-2.0-flash",
}

_KEY_ENV = {"openrouter": "OPENROUTER_API_KEY", "google": "GOOGLE_API_KEY"}
_MODEL_ENV = {"openrouter": "OPENROUTER_MODEL", "google": "GOOGLE_MODEL"}


def build_user_content(
    text: str, sender_name: str | None = None, live_data: dict | None = None
) -> str:
    """Format the user turn sent to the model.

    Live data is serialized as JSON ahead of the message so the model
    answers from current seats, bookings and timings instead of guessing.
    """
    message = f"[From: {sender_name}] {text}" if sender_name else text
    if not live_data:
        return message
    facts = json.dumps(live_data, ensure_ascii=False, indent=2, default=str)
    return (
        "Live data from the booking system (use only these facts for seats, "
        f"bookings and timings):\n{facts}\n\n"
        f"Customer message:\n{message}"
    )


class AIReplyGenerator:
    """Generates free-form replies; every failure path returns ``None``.

    The provider is taken from config, or picked from the available API
    keys with OpenRouter preferred over Google.
    """

    def __init__(self, config: AIConfig) -> None:
        self._config = config
        self.system_prompt = config.system_prompt
        self.provider: str | None = None
        self.api_key: str | None = None
        self.model: str | None = None
        self._initialize()

    def _initialize(self) -> None:
        candidates = [self._config.provider] if self._config.provider else ["openrouter", "google"]
        for provider in candidates:
            api_key = os.environ.get(_KEY_ENV[provider])
            if api_key:
                self.provider = provider
                self.api_key = api_key
                self.model = (
                    self._config.model
                    or os.environ.get(_MODEL_ENV[provider])
                    or DEFAULT_MODELS[provider]
                )
                logger.info("AI replies enabled with %s (%s)", provider, self.model)
                return
        logger.info("AI replies disabled: no API key configured")

    def is_enabled(self) -> bool:
        return self.provider is not None and self.api_key is not None

    def set_system_prompt(self, prompt: str) -> None:
        self.system_prompt = prompt
        logger.info("AI system prompt updated")

    def get_config(self) -> dict:
        return {
            "enabled": self.is_enabled(),
            "provider": self.provider,
            "model": self.model,
            "system_prompt": self.system_prompt,
        }

    async def generate_reply(
        self,
        text: str,
        sender_name: str | None = None,
        live_data: dict | None = None,
    ) -> str | None:
        if not self.is_enabled():
            logger.debug("AI generator not enabled")
            return None
        logger.debug("AI generating reply for: %r", text[:50])
        user_content = build_user_content(text, sender_name, live_data)
        return await asyncio.to_thread(self._call, user_content)

    def _call(self, user_content: str) -> str | None:
        try:
            if self.provider == "openrouter":
                reply = self._call_openrouter(user_content)
            else:
                reply = self._call_gemini(user_content)
        except requests.RequestException as exc:
            logger.error("AI request failed: %s", exc)
            return None
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.error("AI returned an unexpected response: %s", exc)
            return None

        reply = (reply or "").strip()
        return reply or None

    def _call_openrouter(self, user_content: str) -> str:
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": user_content},
            ],
            "max_tokens": self._config.max_tokens,
            "temperature": self._config.temperature,
        }
        resp = requests.post(
            OPENROUTER_URL,
            json=body,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "HTTP-Referer": os.environ.get("SITE_URL", "https://supratravels.gt.tc"),
                "X-Title": "WhatsApp Auto-Reply",
            },
            timeout=self._config.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        return data["choices"][0]["message"]["content"]

    def _call_gemini(self, user_content: str) -> str:
        body = {
            "contents": [{"parts": [{"text": f"{self.system_prompt}\n\n{user_content}"}]}],
            "generationConfig": {
                "maxOutputTokens": self._config.max_tokens,
                "temperature": self._config.temperature,
            },
        }
        resp = requests.post(
            GEMINI_URL.format(model=self.model),
            params={"key": self.api_key},
            json=body,
            timeout=self._config.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        return data["candidates"][0]["content"]["parts"][0]["text"]
