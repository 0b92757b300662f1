from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Optional, Protocol, TypeVar

from codeduel.config import Settings
from codeduel.llm.client import LLMClient, ProviderAdapter
from codeduel.logger import setup_logger
from codeduel.models import (
    EvaluateRequest,
    Evaluation,
    HealthResponse,
    SolveRequest,
    SolveResponse,
)
from codeduel.normalizer import (
    PROVIDER_FAILURE_EVALUATION,
    normalize_evaluation,
    normalize_solution,
)
from codeduel.utils.exceptions import (
    ClientDisconnectedError,
    InvalidRequestError,
    ProviderError,
)
from codeduel.utils.helpers import utc_timestamp

logger = setup_logger(__name__)

T = TypeVar("T")

MISSING_FIELDS = "Missing required fields"
PROBLEM_TOO_LONG = "Problem too long"
INVALID_PROVIDER = "Invalid provider"
SOLVE_FAILED = "Failed to generate solution. Please try again."


class RequestHandler:
    """
    Validates requests, dispatches to a provider adapter and maps failures.

    solve() surfaces provider failures as ProviderError (HTTP 500 at the
    route). evaluate() never fails on provider problems; it degrades to a
    fixed Evaluation instead.
    """

    def __init__(self, settings: Settings, llm: LLMClient) -> None:
        self.settings = settings
        self.llm = llm

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    async def solve(self, request: SolveRequest) -> SolveResponse:
        provider, model, problem = self._require(
            request.provider, request.model, request.problem
        )
        if len(problem) > self.settings.max_problem_length:
            raise InvalidRequestError(PROBLEM_TOO_LONG)
        adapter = self._adapter(provider)

        try:
            raw = await adapter.solve(model, problem)
        except ProviderError as e:
            logger.error(f"🔥 Solve via {provider} {model} failed: {e}")
            raise
        return SolveResponse(solution=normalize_solution(raw))

    async def evaluate(self, request: EvaluateRequest) -> Evaluation:
        provider, model, problem, solution = self._require(
            request.provider, request.model, request.problem, request.solution
        )
        adapter = self._adapter(provider)

        try:
            raw = await adapter.evaluate(model, problem, solution)
        except ProviderError as e:
            logger.error(f"🔥 Evaluation via {provider} {model} failed: {e}")
            return PROVIDER_FAILURE_EVALUATION
        return normalize_evaluation(raw)

    def health(self) -> HealthResponse:
        return HealthResponse(
            status="ok", message="Server is running", timestamp=utc_timestamp()
        )

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------
    def _require(self, *values: Optional[str]) -> tuple[str, ...]:
        if any(value is None or not value.strip() for value in values):
            raise InvalidRequestError(MISSING_FIELDS)
        return tuple(values)  # type: ignore[arg-type]

    def _adapter(self, provider: str) -> ProviderAdapter:
        adapter = self.llm.get_adapter(provider)
        if adapter is None:
            raise InvalidRequestError(INVALID_PROVIDER)
        return adapter


class DisconnectAware(Protocol):
    async def is_disconnected(self) -> bool: ...


async def run_until_disconnected(
    request: DisconnectAware,
    work: Awaitable[T],
    poll_interval: float = 0.5,
) -> T:
    """
    Await work, cancelling it if the client disconnects first.

    Args:
        request: Anything with an async is_disconnected() (a Starlette Request)
        work: The handler coroutine
        poll_interval: Seconds between disconnect checks

    Raises:
        ClientDisconnectedError: the client went away; work was cancelled.
    """
    task: asyncio.Future[Any] = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                raise ClientDisconnectedError("client disconnected before completion")
    finally:
        if not task.done():
            task.cancel()
