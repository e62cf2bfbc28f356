"""Gemini provider: single-prompt ``generateContent`` endpoint.

The system and user prompts are sent as one text part; the API key travels
in the query string.
"""

from __future__ import annotations

from typing import Any

from tender_rag.llm.base import LLMProvider, ProviderRequest

BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


class GeminiProvider(LLMProvider):
    name = "gemini"
    wire_format = "gemini"
    models = ("gemini-1.5-flash", "gemini-1.5-pro")

    def build_request(
        self,
        prompt: str,
        system: str,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> ProviderRequest:
        return ProviderRequest(
            url=f"{BASE_URL}/{model}:generateContent",
            params={"key": self.api_key or ""},
            headers={},
            json={
                "contents": [{"parts": [{"text": f"{system}\n\n{prompt}"}]}],
                "generationConfig": {
                    "temperature": temperature,
                    "maxOutputTokens": max_tokens,
                },
            },
        )

    def extract_text(self, data: Any) -> str:
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"] or ""
        except (KeyError, IndexError, TypeError):
            return ""
