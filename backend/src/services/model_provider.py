"""LLM provider interface and the Anthropic Messages API implementation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from ..models.llm import ModelResponse
from .config import get_config, strip_api_suffix

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_TIMEOUT = 120.0


class ModelProviderError(Exception):
    """Raised when the LLM provider cannot produce a response."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ModelProvider(ABC):
    """Minimal interface the Lore loop needs from an LLM."""

    @abstractmethod
    async def create_message(
        self,
        system: str,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        max_tokens: int = 4096,
    ) -> ModelResponse:
        """Run one model call and return the raw content blocks."""

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        max_tokens: int = 256,
        model: Optional[str] = None,
    ) -> str:
        """One-shot completion returning only the text."""


class AnthropicProvider(ModelProvider):
    """Anthropic Messages API over httpx."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: str = "https://api.anthropic.com",
        thinking_budget: Optional[int] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        # A pasted /v1/messages endpoint would otherwise be doubled
        self.base_url = strip_api_suffix(base_url)
        self.thinking_budget = thinking_budget
        self.timeout = timeout
        self._transport = transport

    def _get_headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key or "",
            "Content-Type": "application/json",
            "anthropic-version": ANTHROPIC_VERSION,
        }

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise ModelProviderError("ANTHROPIC_API_KEY is not configured")

        url = f"{self.base_url}/v1/messages"
        logger.debug(f"Anthropic request to {url} with model {payload.get('model')}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, headers=self._get_headers(), json=payload)
        except httpx.HTTPError as e:
            raise ModelProviderError(f"Anthropic request failed: {e}") from e

        if response.status_code != 200:
            error_text = response.text
            logger.error(f"Anthropic API error {response.status_code}: {error_text}")
            try:
                error_msg = response.json().get("error", {}).get("message", error_text)
            except ValueError:
                error_msg = error_text
            raise ModelProviderError(
                f"Anthropic API error: {error_msg}",
                {"status_code": response.status_code},
            )

        try:
            return response.json()
        except ValueError as e:
            raise ModelProviderError("Anthropic API returned invalid JSON") from e

    async def create_message(
        self,
        system: str,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        max_tokens: int = 4096,
    ) -> ModelResponse:
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "system": system,
            "messages": messages,
        }
        if tools:
            payload["tools"] = tools
        if self.thinking_budget:
            payload["thinking"] = {"type": "enabled", "budget_tokens": self.thinking_budget}

        data = await self._post(payload)
        usage = data.get("usage") or {}
        logger.info(
            f"Anthropic stop_reason={data.get('stop_reason')}",
            extra={
                "input_tokens": usage.get("input_tokens", 0),
                "output_tokens": usage.get("output_tokens", 0),
            },
        )
        return ModelResponse(
            stop_reason=data.get("stop_reason"),
            content=data.get("content") or [],
            model=data.get("model"),
            usage={k: v for k, v in usage.items() if isinstance(v, int)},
        )

    async def generate_text(
        self,
        prompt: str,
        max_tokens: int = 256,
        model: Optional[str] = None,
    ) -> str:
        data = await self._post(
            {
                "model": model or self.model,
                "max_tokens": max_tokens,
                "messages": [{"role": "user", "content": prompt}],
            }
        )
        return ModelResponse(content=data.get("content") or []).text


# Singleton instance for dependency injection
_model_provider: Optional[ModelProvider] = None


def get_model_provider() -> ModelProvider:
    """Get or create the provider configured from the environment."""
    global _model_provider
    if _model_provider is None:
        config = get_config()
        _model_provider = AnthropicProvider(
            api_key=config.anthropic_api_key,
            model=config.lore_model,
            base_url=config.anthropic_base_url,
            thinking_budget=config.thinking_budget,
        )
    return _model_provider


__all__ = ["ModelProvider", "AnthropicProvider", "ModelProviderError", "get_model_provider"]
