"""Running text buffer for incremental model output."""

from __future__ import annotations


class ChunkAccumulator:
    """Append-only view over the text deltas of one upstream stream.

    Chunks are kept in arrival order and never transformed. The splitter
    consumes the pending window with :meth:`drain` once it has classified it.
    """

    __slots__ = ("_pending",)

    def __init__(self) -> None:
        self._pending: list[str] = []

    def append(self, chunk: str) -> None:
        if not chunk:
            return
        self._pending.append(chunk)

    @property
    def text(self) -> str:
        """Text received since the last drain."""
        if len(self._pending) > 1:
            self._pending = ["".join(self._pending)]
        return self._pending[0] if self._pending else ""

    def drain(self) -> str:
        text = self.text
        self._pending.clear()
        return text
