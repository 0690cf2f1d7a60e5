"""Server-Sent-Events framing for the search event stream.

Wire format, one record per event::

    data: {"type":"result","sourceKey":"a",...}\\n\\n

UTF-8, compact JSON, records separated by a blank line.
"""

from __future__ import annotations

import codecs
import json
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import aclosing
from typing import Any

import structlog

from kerkerker.domain.entities.search import SearchEvent

log = structlog.get_logger(__name__)

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS: dict[str, str] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

_RECORD_SEP = "\n\n"
_DATA_FIELD = "data:"


def encode_payload(payload: dict[str, Any]) -> bytes:
    body = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return f"{_DATA_FIELD} {body}{_RECORD_SEP}".encode()


def encode_event(event: SearchEvent) -> bytes:
    return encode_payload(event.to_payload())


async def encode_stream(
    events: AsyncGenerator[SearchEvent, None],
) -> AsyncIterator[bytes]:
    """Encode events as they are produced; one chunk per event.

    Closing this stream closes ``events`` too.
    """
    async with aclosing(events):
        async for event in events:
            yield encode_event(event)


class SseDecoder:
    """Incremental decoder for the stream above.

    Tolerates records and multi-byte characters split across reads,
    ``\\r\\n`` line endings, comment lines and non-``data`` fields.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[dict[str, Any]]:
        """Consume one transport read; return every completed payload."""
        self._buffer += self._decoder.decode(chunk)
        self._buffer = self._buffer.replace("\r\n", "\n")

        payloads: list[dict[str, Any]] = []
        while _RECORD_SEP in self._buffer:
            record, self._buffer = self._buffer.split(_RECORD_SEP, 1)
            payload = self._parse_record(record)
            if payload is not None:
                payloads.append(payload)
        return payloads

    def close(self) -> list[dict[str, Any]]:
        """Flush a trailing record that was not followed by a blank line."""
        self._buffer += self._decoder.decode(b"", final=True)
        record, self._buffer = self._buffer.strip("\r\n"), ""
        if not record:
            return []
        payload = self._parse_record(record)
        return [payload] if payload is not None else []

    @staticmethod
    def _parse_record(record: str) -> dict[str, Any] | None:
        data_lines: list[str] = []
        for line in record.split("\n"):
            if not line.startswith(_DATA_FIELD):
                continue
            value = line[len(_DATA_FIELD) :]
            data_lines.append(value[1:] if value.startswith(" ") else value)
        if not data_lines:
            return None
        try:
            payload = json.loads("\n".join(data_lines))
        except json.JSONDecodeError:
            log.warning("sse_record_invalid_json", record=record[:200])
            return None
        return payload if isinstance(payload, dict) else None
