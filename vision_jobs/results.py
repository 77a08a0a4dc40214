"""Result extraction — generated text, source backend, and credit balance."""
from dataclasses import dataclass
from typing import Any, NamedTuple, Optional

from vision_jobs.constants import (
    ALT_TEXT_MAX_LENGTH,
    MSG_NO_DESCRIPTION,
    MSG_NO_RESULTS,
    MSG_NO_RESULTS_DETAIL,
    TRUNCATE_MIN_KEEP,
    TRUNCATE_STRIP_CHARS,
)
from vision_jobs.errors import ErrorKind, JobError
from vision_jobs.protocol import Completed


@dataclass(frozen=True)
class JobResult:
    text: str
    source: str = ""
    credits: Optional[int] = None

    @property
    def status(self) -> str:
        return "success"


class Description(NamedTuple):
    text: str
    source: str


def extract_descriptions(payload: dict[str, Any]) -> list[Description]:
    """Every non-empty description attached to the first asset, in service order."""
    section = payload.get("all")
    assets = section.get("assets") if isinstance(section, dict) else None
    match assets:
        case [dict() as first, *_]:
            pass
        case _:
            return []

    return [
        Description(text=str(d["description"]), source=str(d.get("source") or ""))
        for d in first.get("descriptions") or []
        if isinstance(d, dict) and d.get("description")
    ]


def first_description(payload: dict[str, Any]) -> str:
    match extract_descriptions(payload):
        case [first, *_]:
            return first.text
        case _:
            return ""


def resolve_completed(completed: Completed) -> JobResult | JobError:
    """Turn a completed payload into a result, or an EMPTY_RESULT error.

    The credit balance is carried on both outcomes.
    """
    match (completed.assets, completed.errors):
        case ([], []):
            return JobError(ErrorKind.EMPTY_RESULT, MSG_NO_RESULTS, completed.credits)
        case ([], errors):
            return JobError(
                ErrorKind.EMPTY_RESULT,
                MSG_NO_RESULTS_DETAIL % ", ".join(errors),
                completed.credits,
            )
        case _:
            pass

    match extract_descriptions(completed.payload):
        case [first, *_]:
            return JobResult(text=first.text, source=first.source, credits=completed.credits)
        case _:
            return JobError(ErrorKind.EMPTY_RESULT, MSG_NO_DESCRIPTION, completed.credits)


def truncate(text: str, max_length: int = ALT_TEXT_MAX_LENGTH) -> str:
    """Cut text to max_length at a word boundary.

    Backs off to the last space only when that keeps at least 60% of the cut,
    so one very long final word does not empty the result.
    """
    text = text.strip()
    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space != -1 and last_space >= max_length * TRUNCATE_MIN_KEEP:
        truncated = truncated[:last_space]

    return truncated.rstrip(TRUNCATE_STRIP_CHARS)
