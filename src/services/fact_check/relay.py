"""Drive one streaming fact-check from upstream chunks to client events.

A relay owns a :class:`RelayState` for exactly one request. Every emission
site goes through :meth:`RelayState.try_terminate` (for result and error) or
checks :attr:`RelayState.has_terminated` (for thinking), so whatever order
upstream completion, client disconnect and the deadline arrive in, the client
sees at most one terminal event and at most one ``[DONE]`` marker.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator
from contextlib import aclosing
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

from schemas.fact_check import FactCheckResult
from schemas.streaming import DONE_FRAME, FactCheckStreamEvent
from services.fact_check.exceptions import ResultParseError
from services.fact_check.normalizer import normalize_result
from services.fact_check.splitter import ThinkingJsonSplitter
from services.providers.exceptions import ProviderError


logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "The request took too long to complete. Please try again."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred while checking the fact."


class RelayOutcome(StrEnum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"


_TERMINAL = frozenset(
    {RelayOutcome.COMPLETED, RelayOutcome.FAILED, RelayOutcome.ABORTED}
)


@dataclass(slots=True)
class RelayState:
    """Per-request lifecycle. Terminal outcomes are sticky."""

    splitter: ThinkingJsonSplitter = field(default_factory=ThinkingJsonSplitter)
    outcome: RelayOutcome = RelayOutcome.IDLE
    thinking_so_far: str = ""

    @property
    def has_terminated(self) -> bool:
        return self.outcome in _TERMINAL

    @property
    def json_buffer(self) -> str:
        return self.splitter.json_buffer

    @property
    def is_collecting_json(self) -> bool:
        return self.splitter.is_collecting_json

    def start(self) -> bool:
        if self.outcome is not RelayOutcome.IDLE:
            return False
        self.outcome = RelayOutcome.STREAMING
        return True

    def try_terminate(self, outcome: RelayOutcome) -> bool:
        # No await between the check and the set, so this is atomic on the loop
        if outcome not in _TERMINAL:
            raise ValueError(f"{outcome} is not a terminal outcome")
        if self.has_terminated:
            return False
        self.outcome = outcome
        return True


class RelayHandler(Protocol):
    """Callback-style consumer of relay events."""

    async def on_thinking(self, text: str) -> None: ...

    async def on_result(self, result: FactCheckResult) -> None: ...

    async def on_error(self, message: str) -> None: ...


class StreamRelay:
    """Relay upstream text deltas for ``statement`` as typed events.

    ``chunks`` is consumed lazily, so opening the upstream call happens on the
    first pull and counts against ``timeout`` like every later chunk.
    """

    def __init__(
        self,
        statement: str,
        chunks: AsyncIterable[str],
        *,
        timeout: float = 120.0,
    ) -> None:
        self.statement = statement
        self.state = RelayState()
        self.result: FactCheckResult | None = None
        self.error: str | None = None
        self._chunks = chunks
        self._timeout = timeout

    def disconnect(self) -> None:
        """Mark the client as gone; nothing further is emitted."""
        if self.state.try_terminate(RelayOutcome.ABORTED):
            logger.info("Client disconnected before the fact check completed")

    def _complete(self, data: dict) -> FactCheckStreamEvent | None:
        result = normalize_result(
            data, self.statement, streamed_thinking=self.state.thinking_so_far
        )
        if not self.state.try_terminate(RelayOutcome.COMPLETED):
            return None
        self.result = result
        return FactCheckStreamEvent(type="result", content=result.to_wire())

    def _fail(self, message: str) -> FactCheckStreamEvent | None:
        if not self.state.try_terminate(RelayOutcome.FAILED):
            return None
        self.error = message
        return FactCheckStreamEvent(type="error", content=message)

    async def events(self) -> AsyncIterator[FactCheckStreamEvent]:
        """Yield thinking events, then at most one result or error event."""
        state = self.state
        if not state.start():
            return

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._timeout
        iterator = aiter(self._chunks)
        terminal: FactCheckStreamEvent | None = None
        try:
            while not state.has_terminated:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise TimeoutError
                try:
                    chunk = await asyncio.wait_for(anext(iterator), remaining)
                except StopAsyncIteration:
                    break
                if state.has_terminated:
                    return

                update = state.splitter.feed(chunk)
                if update.thinking:
                    state.thinking_so_far += update.thinking
                    if not state.has_terminated:
                        yield FactCheckStreamEvent(
                            type="thinking", content=update.thinking
                        )
                if update.result is not None:
                    terminal = self._complete(update.result)
                    break
            else:
                return

            if terminal is None and not state.has_terminated:
                try:
                    terminal = self._complete(state.splitter.finish())
                except ResultParseError as exc:
                    logger.warning(
                        "Stream ended without a parseable result: %s", exc.error_code
                    )
                    terminal = self._fail(str(exc))
        except TimeoutError:
            logger.warning("Fact check stream exceeded %.0fs", self._timeout)
            terminal = self._fail(TIMEOUT_MESSAGE)
        except ProviderError as exc:
            logger.warning("Upstream stream failed (%s): %s", exc.error_code, exc)
            terminal = self._fail(str(exc))
        except (asyncio.CancelledError, GeneratorExit):
            state.try_terminate(RelayOutcome.ABORTED)
            raise
        except Exception:
            logger.exception("Unexpected error while relaying fact check stream")
            terminal = self._fail(UNEXPECTED_ERROR_MESSAGE)
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

        if terminal is not None:
            yield terminal

    async def frames(self) -> AsyncIterator[str]:
        """SSE frames for the client, ending with ``[DONE]`` unless aborted.

        Closing this generator early counts as a disconnect.
        """
        try:
            async with aclosing(self.events()) as events:
                async for event in events:
                    yield event.to_sse()
            if self.state.outcome in (RelayOutcome.COMPLETED, RelayOutcome.FAILED):
                yield DONE_FRAME
        finally:
            self.state.try_terminate(RelayOutcome.ABORTED)

    async def run(self, handler: RelayHandler) -> RelayOutcome:
        """Dispatch events to ``handler`` callbacks and return the outcome."""
        async for event in self.events():
            if event.type == "thinking":
                await handler.on_thinking(event.content)
            elif event.type == "result" and self.result is not None:
                await handler.on_result(self.result)
            elif event.type == "error":
                await handler.on_error(event.content)
        return self.state.outcome
