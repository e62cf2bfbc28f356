"""Chat-completion providers: Groq and OpenAI.

Both speak the OpenAI wire format: ``{model, temperature, max_tokens,
messages}`` in, ``choices[0].message.content`` out.
"""

from __future__ import annotations

from typing import Any

from tender_rag.llm.base import LLMProvider, ProviderRequest


class ChatCompletionProvider(LLMProvider):
    """Base for any OpenAI-compatible ``/chat/completions`` endpoint."""

    wire_format = "openai"
    url: str = ""

    def build_request(
        self,
        prompt: str,
        system: str,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> ProviderRequest:
        return ProviderRequest(
            url=self.url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "messages": [
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
            },
        )

    def extract_text(self, data: Any) -> str:
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            return ""


class GroqProvider(ChatCompletionProvider):
    name = "groq"
    url = "https://api.groq.com/openai/v1/chat/completions"
    models = ("llama-3.3-70b-versatile", "llama-3.1-70b-versatile", "mixtral-8x7b-32768")


class OpenAIProvider(ChatCompletionProvider):
    name = "openai"
    url = "https://api.openai.com/v1/chat/completions"
    models = ("gpt-3.5-turbo", "gpt-4", "gpt-4-turbo")
