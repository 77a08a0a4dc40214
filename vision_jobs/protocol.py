"""Response classifier — one decoding step from raw body to a ParsedResponse.

The service answers submits and polls with loosely-shaped JSON objects:

    {"response_uri": "..."}                          accepted, poll this handle
    {"status": "queued" | "processing"}              still working
    {"status": "completed", "all": {...}, "credits": 42}
    {"all": {"assets": [...]}}                       results inline, submit only
    {"error": "Access denied."}                      rejected

Everything downstream matches on the variants below instead of poking at
optional keys.
"""
import json
import math
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from vision_jobs.constants import STATUS_COMPLETED, STATUS_IN_PROGRESS


@dataclass(frozen=True)
class Accepted:
    handle: str
    credits: Optional[int] = None


@dataclass(frozen=True)
class Completed:
    payload: dict[str, Any]
    credits: Optional[int] = None

    @property
    def assets(self) -> list:
        return _all_section(self.payload).get("assets") or []

    @property
    def errors(self) -> list[str]:
        match _all_section(self.payload).get("errors"):
            case str() as error:
                errors = [error]
            case list() as errors:
                pass
            case _:
                errors = []
        return [str(e) for e in errors if e]


@dataclass(frozen=True)
class Inline(Completed):
    """Results delivered without a status marker.

    A submit may answer this way instead of handing back a handle; a poll
    reply shaped like this is unexpected.
    """


@dataclass(frozen=True)
class InProgress:
    status: str


@dataclass(frozen=True)
class ServiceError:
    message: str
    credits: Optional[int] = None


@dataclass(frozen=True)
class Malformed:
    body: str = field(repr=False)


@dataclass(frozen=True)
class Unrecognized:
    status: Optional[str]
    payload: dict[str, Any] = field(repr=False)


ParsedResponse = Union[Accepted, Completed, Inline, InProgress, ServiceError, Malformed, Unrecognized]


def extract_credits(payload: dict[str, Any]) -> Optional[int]:
    """Remaining credit balance, or None when the payload carries none."""
    match payload.get("credits"):
        case bool():
            return None
        case int() as value:
            return value
        case float() as value:
            return int(value) if math.isfinite(value) else None
        case str() as value:
            try:
                number = float(value)
            except ValueError:
                return None
            return int(number) if math.isfinite(number) else None
        case _:
            return None


def _all_section(payload: dict[str, Any]) -> dict[str, Any]:
    section = payload.get("all")
    return section if isinstance(section, dict) else {}


def classify_payload(payload: Any, body: str = "") -> ParsedResponse:
    if not isinstance(payload, dict):
        return Malformed(body)

    credits = extract_credits(payload)
    status = payload.get("status")

    match payload:
        case {"error": error} if error:
            return ServiceError(str(error), credits)
        case {"response_uri": str() as uri} if uri:
            return Accepted(uri, credits)
        case _ if status == STATUS_COMPLETED:
            return Completed(payload, credits)
        case _ if status in STATUS_IN_PROGRESS:
            return InProgress(status)
        case _ if status is None and _all_section(payload).get("assets"):
            return Inline(payload, credits)
        case _:
            return Unrecognized(status if isinstance(status, str) else None, payload)


def parse_response(body: str | bytes) -> ParsedResponse:
    """Decode a response body and classify it."""
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    try:
        payload = json.loads(text)
    except ValueError:
        return Malformed(text)
    return classify_payload(payload, text)
