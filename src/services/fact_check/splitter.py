"""Separate streamed reasoning prose from the JSON result that follows it.

The model narrates its analysis and then emits a single JSON object. Prose
before the first ``{`` is thinking; from the first ``{`` on, everything is
collected as a JSON candidate until it parses. Prose arriving after JSON
collection has begun is treated as part of the candidate.

Prose is released one chunk late: a chunk is only flushed once the next one
shows that the JSON has not started yet, so the prose directly before the
object goes out together with whatever was still held.

This is deliberately a brace scan rather than a tokenizer. Callers only depend
on :meth:`ThinkingJsonSplitter.feed` and :meth:`ThinkingJsonSplitter.finish`,
so an incremental JSON parser can replace it without touching the relay.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from services.fact_check.accumulator import ChunkAccumulator
from services.fact_check.exceptions import PartialStreamError, ResultParseError
from services.fact_check.normalizer import extract_json_object, try_parse_result


@dataclass(frozen=True, slots=True)
class SplitUpdate:
    """What one chunk produced: newly flushed prose and/or a parsed object."""

    thinking: str = ""
    result: dict[str, Any] | None = None


_EMPTY = SplitUpdate()


class ThinkingJsonSplitter:
    def __init__(self, accumulator: ChunkAccumulator | None = None) -> None:
        self._buffer = accumulator if accumulator is not None else ChunkAccumulator()
        self.json_buffer = ""
        self.is_collecting_json = False
        self.thinking = ""
        self.completed = False

    def feed(self, chunk: str) -> SplitUpdate:
        if self.completed or not chunk:
            return _EMPTY

        flushed = ""
        if self.is_collecting_json:
            self.json_buffer += chunk
            new_json = chunk
        else:
            held = self._buffer.text
            brace = chunk.find("{")
            if brace != -1:
                self._buffer.drain()
                flushed = held + chunk[:brace]
                self.json_buffer = chunk[brace:]
                self.is_collecting_json = True
                new_json = self.json_buffer
            else:
                # the newest prose chunk is held back one step so short deltas
                # coalesce; whitespace-only prose waits for real text
                if held.strip():
                    flushed = self._buffer.drain()
                self._buffer.append(chunk)
                new_json = ""

        self.thinking += flushed

        # a chunk without "}" cannot complete an object that did not parse before
        if "}" in new_json:
            parsed = try_parse_result(self.json_buffer)
            if parsed is not None:
                self.completed = True
                self.is_collecting_json = False
                self.json_buffer = ""
                return SplitUpdate(thinking=flushed, result=parsed)

        return SplitUpdate(thinking=flushed) if flushed else _EMPTY

    def finish(self) -> dict[str, Any]:
        """Resolve the stream once no more chunks will arrive.

        Raises:
            ResultParseError: JSON collection never started.
            PartialStreamError: the collected candidate cannot be recovered.
        """
        if not self.is_collecting_json:
            raise ResultParseError("Stream ended without valid result")
        parsed = extract_json_object(self.json_buffer)
        if parsed is None:
            raise PartialStreamError()
        self.completed = True
        self.is_collecting_json = False
        return parsed
