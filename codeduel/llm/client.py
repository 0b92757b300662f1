from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from codeduel.config import Settings
from codeduel.llm import prompts
from codeduel.llm.capabilities import (
    MAX_TOKENS,
    classify_model,
    sampling_temperature,
)
from codeduel.logger import setup_logger
from codeduel.utils.exceptions import ProviderCallError, ProviderResponseError
from codeduel.utils.helpers import preview

logger = setup_logger(__name__)

SOLVE_MAX_TOKENS = 1000
EVALUATE_MAX_TOKENS = 500
CONSTRAINED_EVALUATE_MAX_TOKENS = 1000


class ProviderAdapter(ABC):
    """
    Shapes requests for one LLM provider and reads its responses.

    Subclasses implement the provider-specific hooks:
    - build_solve_payload
    - build_evaluate_payload
    - extract_raw_text
    - _headers

    The HTTP call itself (timeout, optional retries, error mapping) is shared.
    """

    name = ""
    path = ""

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str,
        base_url: str,
        temperature: float = 0.7,
        max_attempts: int = 1,
    ) -> None:
        self._http = http
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_attempts = max(1, max_attempts)

    # ------------------------------------------------------------------
    # Provider-specific hooks
    # ------------------------------------------------------------------
    @abstractmethod
    def build_solve_payload(self, model: str, problem: str) -> Dict[str, Any]:
        """JSON body asking the model for a solution."""

    @abstractmethod
    def build_evaluate_payload(
        self, model: str, problem: str, solution: str
    ) -> Dict[str, Any]:
        """JSON body asking the model to review a solution."""

    @abstractmethod
    def extract_raw_text(self, data: Any) -> str:
        """First text segment of a decoded response; ProviderResponseError if none."""

    @abstractmethod
    def _headers(self) -> Dict[str, str]:
        """Auth and content headers for every request."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def solve(self, model: str, problem: str) -> str:
        """Ask the model for a solution and return its raw text."""
        return await self.complete(self.build_solve_payload(model, problem))

    async def evaluate(self, model: str, problem: str, solution: str) -> str:
        """Ask the model to review a solution and return its raw text."""
        return await self.complete(
            self.build_evaluate_payload(model, problem, solution)
        )

    async def complete(self, payload: Dict[str, Any]) -> str:
        """
        Send a payload to the provider and return the first text segment.

        Args:
            payload: JSON body built by one of the build_* hooks.

        Returns:
            Raw model text (possibly empty).

        Raises:
            ProviderCallError: transport, HTTP status or body decoding failure.
            ProviderResponseError: the response had no text content.
        """
        model = payload.get("model", "")
        logger.info(f"🤖 Calling {self.name} {model}...")

        data = await self._call_with_retries(payload)
        text = self.extract_raw_text(data)

        logger.debug(f"Raw {self.name} response for {model}: {preview(text)}")
        return text

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _call_with_retries(self, payload: Dict[str, Any]) -> Any:
        """
        Retry wrapper around a single POST.

        Retries on 429/5xx and network errors with backoff, up to
        max_attempts. With max_attempts == 1 the first failure is final.
        """
        backoffs = [0.0, 0.5, 1.0, 2.0]

        last_error: Optional[Exception] = None

        for attempt in range(self.max_attempts):
            try:
                delay = backoffs[min(attempt, len(backoffs) - 1)]
                if delay > 0:
                    await asyncio.sleep(delay)

                return await self._post(payload)

            except Exception as e:
                last_error = e
                if not self._is_retriable_error(e) or attempt == self.max_attempts - 1:
                    break
                logger.warning(
                    f"⚠️ {self.name} call error (attempt {attempt + 1}/{self.max_attempts}): {e}"
                )

        raise ProviderCallError(f"{self.name} call failed: {self._describe(last_error)}")

    async def _post(self, payload: Dict[str, Any]) -> Any:
        resp = await self._http.post(
            f"{self.base_url}{self.path}", headers=self._headers(), json=payload
        )
        resp.raise_for_status()
        return resp.json()

    def _is_retriable_error(self, e: Exception) -> bool:
        """
        Determine if an error is transient and worth retrying.

        HTTP 429/5xx and network/timeouts are retriable.
        """
        if isinstance(e, httpx.HTTPStatusError):
            status = e.response.status_code
            return status == 429 or 500 <= status < 600

        if isinstance(e, (httpx.TimeoutException, httpx.TransportError)):
            return True

        return False

    def _describe(self, e: Optional[Exception]) -> str:
        # Status errors carry the request (and its auth header) in their repr.
        if isinstance(e, httpx.HTTPStatusError):
            return f"HTTP {e.response.status_code}"
        if isinstance(e, httpx.TimeoutException):
            return f"timeout ({type(e).__name__})"
        if e is None:
            return "unknown error"
        return f"{type(e).__name__}: {e}"


class OpenAIAdapter(ProviderAdapter):
    """OpenAI chat completions API."""

    name = "openai"
    path = "/chat/completions"

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def _base_payload(
        self, model: str, messages: List[Dict[str, str]], max_tokens: int
    ) -> Dict[str, Any]:
        capabilities = classify_model(model)
        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": sampling_temperature(capabilities, self.temperature),
            capabilities.token_limit_param: max_tokens,
        }
        return payload

    def build_solve_payload(self, model: str, problem: str) -> Dict[str, Any]:
        messages = [
            {"role": "system", "content": prompts.solve_system_prompt()},
            {"role": "user", "content": prompts.solve_user_prompt(problem)},
        ]
        return self._base_payload(model, messages, SOLVE_MAX_TOKENS)

    def build_evaluate_payload(
        self, model: str, problem: str, solution: str
    ) -> Dict[str, Any]:
        capabilities = classify_model(model)
        messages = [
            {
                "role": "user",
                "content": prompts.compact_evaluation_prompt(problem, solution),
            }
        ]
        max_tokens = (
            EVALUATE_MAX_TOKENS
            if capabilities.token_limit_param == MAX_TOKENS
            else CONSTRAINED_EVALUATE_MAX_TOKENS
        )
        payload = self._base_payload(model, messages, max_tokens)
        if capabilities.supports_structured_output:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def extract_raw_text(self, data: Any) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise ProviderResponseError("openai response has no message content")
        if not isinstance(content, str):
            raise ProviderResponseError("openai response has no text content")
        return content


class AnthropicAdapter(ProviderAdapter):
    """Anthropic messages API."""

    name = "anthropic"
    path = "/messages"

    def __init__(self, *args: Any, api_version: str = "2023-06-01", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.api_version = api_version

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self._api_key,
            "anthropic-version": self.api_version,
        }

    def _base_payload(
        self, model: str, system: str, content: str, max_tokens: int
    ) -> Dict[str, Any]:
        capabilities = classify_model(model)
        # The messages API has a single token-limit parameter for every model.
        return {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": sampling_temperature(capabilities, self.temperature),
            "system": system,
            "messages": [{"role": "user", "content": content}],
        }

    def build_solve_payload(self, model: str, problem: str) -> Dict[str, Any]:
        return self._base_payload(
            model,
            prompts.solve_system_prompt(),
            prompts.solve_user_prompt(problem),
            SOLVE_MAX_TOKENS,
        )

    def build_evaluate_payload(
        self, model: str, problem: str, solution: str
    ) -> Dict[str, Any]:
        return self._base_payload(
            model,
            prompts.reviewer_system_prompt(),
            prompts.evaluation_prompt(problem, solution),
            EVALUATE_MAX_TOKENS,
        )

    def extract_raw_text(self, data: Any) -> str:
        blocks = data.get("content") if isinstance(data, dict) else None
        for block in blocks or []:
            if isinstance(block, dict) and block.get("type") == "text":
                text = block.get("text")
                if isinstance(text, str):
                    return text
        raise ProviderResponseError("anthropic response has no text content")


class LLMClient:
    """
    Long-lived provider adapters sharing one HTTP connection pool.

    Built once at startup from Settings and safe to share between
    concurrent requests.
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.llm_timeout_seconds),
            transport=transport,
        )
        common = {
            "temperature": settings.temperature,
            "max_attempts": settings.llm_max_attempts,
        }
        self.adapters: Dict[str, ProviderAdapter] = {
            OpenAIAdapter.name: OpenAIAdapter(
                self._client,
                settings.openai_api_key,
                settings.openai_base_url,
                **common,
            ),
            AnthropicAdapter.name: AnthropicAdapter(
                self._client,
                settings.anthropic_api_key,
                settings.anthropic_base_url,
                api_version=settings.anthropic_version,
                **common,
            ),
        }

    @property
    def providers(self) -> List[str]:
        return list(self.adapters)

    def get_adapter(self, provider: str) -> Optional[ProviderAdapter]:
        return self.adapters.get(provider)

    async def aclose(self) -> None:
        await self._client.aclose()
