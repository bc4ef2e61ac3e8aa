"""
Delta Exchange API Errors

Every upstream failure is turned into one DeltaAPIError at the transport
boundary, whatever shape the error payload had (string, {code}, raw text).
Callers only ever read http_status, path, detail and kind.
"""

import json
import re
from typing import Any, Optional

# Raw error bodies (HTML error pages, proxies) are clipped to this length
MAX_DETAIL_CHARS = 220


class DeltaAPIError(Exception):
    """
    Failed Delta Exchange request.

    Attributes:
        http_status: HTTP status code, or None for network failures
        path: Request path (e.g., "/v2/tickers")
        detail: Short error excerpt, or None when the body was empty
        kind: "transport" (non-2xx / network) or "application" (success: false)
    """

    def __init__(self, http_status: Optional[int], path: str, detail: Optional[str] = None,
                 kind: str = "transport"):
        self.http_status = http_status
        self.path = path
        self.detail = detail
        self.kind = kind
        super().__init__(self._format())

    def _format(self) -> str:
        if self.kind == "application":
            return f"Delta API error for {self.path}: {self.detail}"
        if self.http_status is None:
            return f"Request failed for {self.path} ({self.detail})"
        if self.detail:
            return f"HTTP {self.http_status} for {self.path} ({self.detail})"
        return f"HTTP {self.http_status} for {self.path}"


def clip(text: str, limit: int = MAX_DETAIL_CHARS) -> str:
    """Collapse whitespace and cut the text to at most `limit` characters."""
    return re.sub(r"\s+", " ", text).strip()[:limit]


def parse_error_payload(text: Optional[str]) -> Optional[Any]:
    """
    Parse an error response body.

    Returns the decoded JSON, {"raw": text} for non-JSON bodies, or None
    when the body is empty.
    """
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return {"raw": text}


def error_detail(payload: Any) -> Optional[str]:
    """
    Extract a short detail string from a parsed error payload.

    Examples:
        >>> error_detail({"error": "bad_schema", "message": "invalid symbol"})
        'bad_schema: invalid symbol'
        >>> error_detail({"error": {"code": "rate_limited"}})
        'rate_limited'
        >>> error_detail({"raw": "<html>  Bad   Gateway </html>"})
        '<html> Bad Gateway </html>'
    """
    if not isinstance(payload, dict):
        return None

    error = payload.get("error")
    if isinstance(error, str):
        message = payload.get("message")
        return f"{error}: {message}" if message else error

    if isinstance(error, dict) and error.get("code"):
        return str(error["code"])

    if payload.get("raw"):
        return clip(str(payload["raw"]))

    return None


def application_detail(payload: Any) -> str:
    """Detail for a 2xx response flagged success: false."""
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("code"):
            return str(error["code"])
        if isinstance(error, str) and error:
            return error
        body = error if error is not None else payload
    else:
        body = payload
    return clip(json.dumps(body, default=str))
