"""Streaming restorer: buffers chunks and restores tokens as they complete.

For SSE/streaming responses where tokens arrive as fragments:
    [PER  ->  [PERSON_  ->  [PERSON_1]

The restorer holds back a potential token start and flushes restored
text as soon as the token is complete or clearly not a token.

Usage:
    restorer = StreamingRestorer(context.mappings)
    for chunk in sse_stream:
        ready_text = restorer.feed(chunk)
        if ready_text:
            yield ready_text
    yield restorer.flush()
"""

from __future__ import annotations
import re
from typing import Iterable

from .masker import TOKEN_RE
from .types import PiiMapping

# A buffer that could still grow into a complete token
_TOKEN_PREFIX = re.compile(r"\[(?:[A-Z]+(?:_\d*)?)?\Z")


class StreamingRestorer:
    """Buffers streaming chunks and restores complete tokens."""

    __slots__ = ("_lookup", "_buffer", "_max_token_len")

    def __init__(self, mappings: Iterable[PiiMapping], *, max_token_len: int = 40) -> None:
        self._lookup = {m.token: m.original_value for m in mappings}
        self._buffer = ""
        self._max_token_len = max_token_len  # safety limit

    def feed(self, chunk: str) -> str:
        """Feed a chunk, return any text ready to emit."""
        self._buffer += chunk
        return self._drain()

    def flush(self) -> str:
        """Flush remaining buffer (call at end of stream)."""
        out = self._drain()
        out += self._buffer
        self._buffer = ""
        return out

    def _drain(self) -> str:
        out_parts: list[str] = []

        while self._buffer:
            idx = self._buffer.find("[")

            if idx == -1:
                out_parts.append(self._buffer)
                self._buffer = ""
                break

            if idx > 0:
                out_parts.append(self._buffer[:idx])
                self._buffer = self._buffer[idx:]

            # Buffer now starts with [
            m = TOKEN_RE.match(self._buffer)
            if m:
                token = m.group()
                out_parts.append(self._lookup.get(token, token))
                self._buffer = self._buffer[m.end():]
                continue

            if _TOKEN_PREFIX.match(self._buffer) and len(self._buffer) <= self._max_token_len:
                # Still accumulating a potential token, wait for more data
                break

            # Not a token: emit the bracket and keep scanning
            out_parts.append("[")
            self._buffer = self._buffer[1:]

        return "".join(out_parts)
