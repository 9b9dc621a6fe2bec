from dataclasses import dataclass
from typing import Dict

import requests


@dataclass(frozen=True)
class ResponseDescriptor:
    """
    Summary of a completed HTTP exchange, as consumed by MatchCriteria.
    Immutable once produced by the executor.
    """
    code: int
    body: str = ""
    lines: int = 0
    words: int = 0
    size: int = 0

    @classmethod
    def from_text(cls, code: int, body: str) -> "ResponseDescriptor":
        """Compute line, word and UTF-8 byte counts from the body text."""
        body = body or ""
        return cls(
            code=int(code),
            body=body,
            lines=len(body.splitlines()),
            words=len(body.split()),
            size=len(body.encode("utf-8")),
        )

    @classmethod
    def from_response(cls, response: Dict) -> "ResponseDescriptor":
        """
        Adapt a response dict ({"status", "body", "headers"}) as produced by the
        request sender. Failed exchanges carry a non-numeric status and map to code 0.
        """
        status = response.get("status")
        code = int(status) if str(status).isdigit() else 0
        return cls.from_text(code, response.get("body") or "")

    @classmethod
    def from_requests(cls, response: requests.Response) -> "ResponseDescriptor":
        body = response.text or ""
        return cls(
            code=response.status_code,
            body=body,
            lines=len(body.splitlines()),
            words=len(body.split()),
            size=len(response.content or b""),
        )
