from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

MAX_STATUS_DIGITS = 5

_STATUS_RE = re.compile(r"\d{1,%d}" % MAX_STATUS_DIGITS, re.ASCII)
_DELAY_RE = re.compile(r"\d+", re.ASCII)


class ResponseParseError(ValueError):
    """Raised when pane text cannot be turned into a Response."""


class InvalidStatus(ResponseParseError):
    def __init__(self, text: str) -> None:
        super().__init__(f"Invalid status code '{text}'")
        self.text = text


class InvalidHeader(ResponseParseError):
    def __init__(self, line: str) -> None:
        super().__init__(f"Invalid header '{line}': expected 'key: value'")
        self.line = line


class InvalidDelay(ResponseParseError):
    def __init__(self, text: str) -> None:
        super().__init__(f"Can't parse '{text}' as number")
        self.text = text


def _default_headers() -> Dict[str, List[str]]:
    return {"X-Server": ["HTTPLab"]}


@dataclass(frozen=True)
class Response:
    """The reply served by the mock server.

    Instances are never mutated after construction; a save builds a new one.
    """

    status: int = 200
    headers: Dict[str, List[str]] = field(default_factory=_default_headers)
    body: bytes = b"Hello, World"
    delay_ms: int = 0

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000.0

    def header_lines(self) -> List[str]:
        """One ``key: value`` line per value; multi-valued keys repeat."""
        lines: List[str] = []
        for key, values in self.headers.items():
            for value in values:
                lines.append(f"{key}: {value}")
        return lines

    def has_header(self, name: str) -> bool:
        lowered = name.lower()
        return any(key.lower() == lowered for key in self.headers)


def parse_status(text: str) -> int:
    cleaned = text.strip()
    if not _STATUS_RE.fullmatch(cleaned):
        raise InvalidStatus(cleaned)
    return int(cleaned)


def parse_headers(text: str) -> Dict[str, List[str]]:
    headers: Dict[str, List[str]] = {}
    for line in text.splitlines():
        if not line.strip():
            continue
        key, sep, value = line.partition(":")
        key = key.strip()
        if not sep or not key:
            raise InvalidHeader(line)
        # Header lines go on the wire as latin-1.
        try:
            line.encode("latin-1")
        except UnicodeEncodeError:
            raise InvalidHeader(line) from None
        headers.setdefault(key, []).append(value.strip())
    return headers


def parse_delay(text: str) -> int:
    """Return the delay in milliseconds.

    Only plain digit strings are accepted: empty and negative values raise
    InvalidDelay instead of being clamped to zero.
    """
    cleaned = text.strip()
    if not _DELAY_RE.fullmatch(cleaned):
        raise InvalidDelay(cleaned)
    return int(cleaned)


def parse_response(
    status_text: str,
    headers_text: str,
    body_text: str,
    delay_text: str,
) -> Response:
    return Response(
        status=parse_status(status_text),
        headers=parse_headers(headers_text),
        body=body_text.encode("utf-8"),
        delay_ms=parse_delay(delay_text),
    )


class ResponseStore:
    """Holds the current Response; ``save`` is the only writer."""

    def __init__(self, response: Optional[Response] = None) -> None:
        self._lock = threading.Lock()
        self._response = response or Response()

    def get(self) -> Response:
        with self._lock:
            return self._response

    def replace(self, response: Response) -> None:
        with self._lock:
            self._response = response

    def save(
        self,
        status_text: str,
        headers_text: str,
        body_text: str,
        delay_text: str,
    ) -> Response:
        # Parse everything before touching the stored value.
        response = parse_response(status_text, headers_text, body_text, delay_text)
        self.replace(response)
        return response
