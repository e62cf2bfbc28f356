"""Hugging Face Inference API provider.

Response bodies come back either as a list whose first item carries
``generated_text`` or as a single object with that key.
"""

from __future__ import annotations

from typing import Any

from tender_rag.llm.base import LLMProvider, ProviderRequest

BASE_URL = "https://api-inference.huggingface.co/models"


class HuggingFaceProvider(LLMProvider):
    name = "huggingface"
    wire_format = "huggingface"
    models = ("mistralai/Mistral-7B-Instruct-v0.2", "meta-llama/Llama-2-70b-chat-hf")

    def build_request(
        self,
        prompt: str,
        system: str,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> ProviderRequest:
        return ProviderRequest(
            url=f"{BASE_URL}/{model}",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "inputs": f"{system}\n\n{prompt}",
                "parameters": {
                    "temperature": temperature,
                    "max_new_tokens": max_tokens,
                    "return_full_text": False,
                },
            },
        )

    def extract_text(self, data: Any) -> str:
        if isinstance(data, list):
            data = data[0] if data else {}
        if isinstance(data, dict):
            return data.get("generated_text") or ""
        return ""
