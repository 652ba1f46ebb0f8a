"""
LLM Client for the TabWriter service
------------------------------------
Thin chat-completions wrapper supporting Azure OpenAI and OpenAI. Every
component talks to the model through ``LLMClient.complete``: a system
instruction plus a user prompt in, generated text out.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional, Protocol, Sequence

import openai
import structlog
from openai import AsyncOpenAI

from tabwriter.core import config
from tabwriter.core.exceptions import CompletionUnavailable, ConfigurationError

# ────────────────────────────────────────────────────────────
#  Logging
# ────────────────────────────────────────────────────────────
logger = structlog.get_logger(__name__)


class CompletionClient(Protocol):
    """Anything exposing ``complete``; the pipelines accept any such client."""

    async def complete(
        self,
        system_instruction: str,
        user_prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        stop: Optional[Sequence[str]] = None,
        top_p: Optional[float] = None,
        frequency_penalty: Optional[float] = None,
        presence_penalty: Optional[float] = None,
    ) -> str: ...


# ────────────────────────────────────────────────────────────
#  Main LLM Client
# ────────────────────────────────────────────────────────────
class LLMClient:
    """Completion client with deferred credential discovery."""

    def __init__(self):
        self.azure_client: Optional[AsyncOpenAI] = None
        self.openai_client: Optional[AsyncOpenAI] = None
        self._initialized = False
        self._azure_endpoint: Optional[str] = None
        self._azure_deployment: Optional[str] = None
        self._azure_api_version: str = "preview"

        try:
            self._init_clients()
            self._initialized = True
        except ConfigurationError as e:
            logger.warning("LLM client initialization deferred", error=str(e))

    def _init_clients(self) -> None:
        """Initialize Azure and/or OpenAI clients based on environment."""
        azure_key = os.getenv("AZURE_OPENAI_API_KEY")
        azure_endpoint = os.getenv("AZURE_OPENAI_ENDPOINT")
        azure_deployment = os.getenv("AZURE_OPENAI_DEPLOYMENT")
        self._azure_api_version = os.getenv("AZURE_OPENAI_API_VERSION", "preview")

        if azure_key and azure_endpoint and azure_deployment:
            self._azure_endpoint = azure_endpoint.rstrip("/")
            self._azure_deployment = azure_deployment
            # OpenAI v1-compatible path with explicit api-version for Azure
            azure_base = f"{self._azure_endpoint}/openai/v1"
            if self._azure_api_version:
                azure_base = f"{azure_base}?api-version={self._azure_api_version}"
            self.azure_client = AsyncOpenAI(
                api_key=azure_key,
                base_url=azure_base,
                timeout=config.LLM_TIMEOUT_SEC,
            )
            logger.info(
                "Azure OpenAI client initialized",
                endpoint=self._azure_endpoint,
                api_version=self._azure_api_version,
            )

        openai_key = os.getenv("OPENAI_API_KEY")
        if openai_key:
            self.openai_client = AsyncOpenAI(api_key=openai_key, timeout=config.LLM_TIMEOUT_SEC)
            logger.info("OpenAI client initialized")

        if not self.azure_client and not self.openai_client:
            raise ConfigurationError(
                "Neither AZURE_OPENAI_* nor OPENAI_API_KEY environment variables are set"
            )

    def is_initialized(self) -> bool:
        return self._initialized

    def _ensure_initialized(self) -> None:
        """Ensure client is initialized before use."""
        if not self._initialized:
            self._init_clients()
            self._initialized = True

    def _select_client(self) -> tuple[AsyncOpenAI, str]:
        if self.azure_client is not None and self._azure_deployment:
            return self.azure_client, self._azure_deployment
        assert self.openai_client is not None
        return self.openai_client, config.LLM_MODEL

    # ────────────────────────────────────────────────────────────
    #  Public Interface
    # ────────────────────────────────────────────────────────────

    async def complete(
        self,
        system_instruction: str,
        user_prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        stop: Optional[Sequence[str]] = None,
        top_p: Optional[float] = None,
        frequency_penalty: Optional[float] = None,
        presence_penalty: Optional[float] = None,
    ) -> str:
        """Return the model's reply text for one system + user exchange.

        Raises:
            ConfigurationError: no credential is configured.
            CompletionUnavailable: the upstream call failed; the SDK error
                is chained as ``__cause__``.
        """
        self._ensure_initialized()
        client, model = self._select_client()

        messages: List[Dict[str, str]] = [
            {"role": "system", "content": system_instruction},
            {"role": "user", "content": user_prompt},
        ]
        extra: Dict[str, Any] = {}
        if stop:
            extra["stop"] = list(stop)
        if top_p is not None:
            extra["top_p"] = top_p
        if frequency_penalty is not None:
            extra["frequency_penalty"] = frequency_penalty
        if presence_penalty is not None:
            extra["presence_penalty"] = presence_penalty

        try:
            response = await client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
                **extra,
            )
        except openai.OpenAIError as e:
            logger.warning(
                "Completion request failed",
                model=model,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise CompletionUnavailable(f"Completion request failed: {e}") from e

        if not response.choices:
            return ""
        content = response.choices[0].message.content
        return (content or "").strip()


# ────────────────────────────────────────────────────────────
#  Singleton Instance
# ────────────────────────────────────────────────────────────
llm_client = LLMClient()


def get_llm_client() -> LLMClient:
    """Return the shared client, raising ConfigurationError when unconfigured."""
    llm_client._ensure_initialized()
    return llm_client
