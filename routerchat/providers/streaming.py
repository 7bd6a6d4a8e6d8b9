"""
Incremental decoder for ``data:``-framed event streams.

The framing is shared by every backend; only the location of the generated
text inside each event differs, so the codec hands the decoder an extractor
instead of the decoder knowing payload shapes.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterable, AsyncIterator, Callable
from typing import Any

from routerchat.core import StreamingError, get_logger

logger = get_logger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"

DeltaExtractor = Callable[[Any], str | None]
ErrorProbe = Callable[[Any], str | None]


class StreamDecoder:
    """Turns response lines into a running total of generated text."""

    def __init__(
        self,
        extract_delta: DeltaExtractor,
        extract_error: ErrorProbe | None = None,
    ) -> None:
        self.extract_delta = extract_delta
        self.extract_error = extract_error

    async def decode(self, lines: AsyncIterable[str]) -> AsyncIterator[str]:
        """
        Yield the cumulative text after every non-empty fragment.

        Lines without the ``data:`` prefix are ignored, ``data: [DONE]`` ends
        the sequence, and payloads that do not parse or carry no fragment
        are skipped. An error event raises ``StreamingError``.
        """
        accumulated = ""
        async for raw_line in lines:
            line = raw_line.strip()
            if not line.startswith(DATA_PREFIX):
                continue
            data = line[len(DATA_PREFIX):].strip()
            if data == DONE_SENTINEL:
                return

            try:
                payload = json.loads(data)
            except json.JSONDecodeError:
                logger.debug("Skipping malformed stream line", data={"line": data[:200]})
                continue

            if self.extract_error is not None:
                error_message = self.extract_error(payload)
                if error_message:
                    raise StreamingError(error_message)

            try:
                fragment = self.extract_delta(payload)
            except (KeyError, IndexError, TypeError, AttributeError):
                fragment = None
            if not isinstance(fragment, str) or not fragment:
                continue

            accumulated += fragment
            yield accumulated
