"""LLM providers (Groq, Gemini, Hugging Face, OpenAI) behind one gateway."""

from tender_rag.llm.base import LLMProvider, ProviderCallSpec
from tender_rag.llm.errors import (
    LLMError,
    MalformedOutputError,
    NoProviderConfiguredError,
    ProviderError,
    ProviderNotConfiguredError,
    TokenOverflowError,
)
from tender_rag.llm.factory import available_providers, build_gateway, get_llm_provider
from tender_rag.llm.gateway import ProviderGateway
from tender_rag.llm.json_output import parse_json_response

__all__ = [
    "LLMError",
    "LLMProvider",
    "MalformedOutputError",
    "NoProviderConfiguredError",
    "ProviderCallSpec",
    "ProviderError",
    "ProviderGateway",
    "ProviderNotConfiguredError",
    "TokenOverflowError",
    "available_providers",
    "build_gateway",
    "get_llm_provider",
    "parse_json_response",
]
