"""Field generation — alt text, caption, and description for one image.

generate_fields() is the batch entry point used by callers such as an upload
hook: every field is submitted at once, the handles are polled in a single
session, and each field gets back a JobResult or a JobError. Persisting the
text and deciding which fields to skip stays with the caller.
"""
import asyncio
import dataclasses
import logging
from enum import Enum
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

from vision_jobs.client import (
    AnalysisRequest,
    Failed,
    Immediate,
    Outcome,
    Pending,
    VisionatiClient,
)
from vision_jobs.config import Config, FieldSettings
from vision_jobs.constants import ALT_TEXT_MAX_LENGTH, DEFAULT_FEATURES
from vision_jobs.errors import JobError, is_credit_error
from vision_jobs.results import JobResult, truncate

logger = logging.getLogger(__name__)


class FieldContext(str, Enum):
    ALT_TEXT = "alt_text"
    CAPTION = "caption"
    DESCRIPTION = "description"


def settings_for(config: Config, field: FieldContext) -> FieldSettings:
    match field:
        case FieldContext.ALT_TEXT:
            return config.alt_text
        case FieldContext.CAPTION:
            return config.caption
        case FieldContext.DESCRIPTION:
            return config.description


def request_for_field(
    config: Config, path: Union[str, Path], field: FieldContext
) -> AnalysisRequest:
    settings = settings_for(config, field)
    return AnalysisRequest(
        path=path,
        role=settings.role,
        prompt=settings.prompt,
        language=config.language,
        backend=settings.backend,
        features=DEFAULT_FEATURES,
    )


def _finish(field: FieldContext, outcome: Outcome) -> Outcome:
    match (field, outcome):
        case (FieldContext.ALT_TEXT, JobResult() as result):
            return dataclasses.replace(result, text=truncate(result.text, ALT_TEXT_MAX_LENGTH))
        case _:
            return outcome


async def generate_fields(
    client: VisionatiClient,
    requests: Mapping[FieldContext, AnalysisRequest],
    max_rounds: Optional[int] = None,
) -> dict[FieldContext, Outcome]:
    """Submit every request concurrently, then poll the accepted ones together.

    All requests should target the same image so they share the client's
    encoder cache.
    """
    fields = list(requests)
    submitted = await asyncio.gather(*(client.submit(requests[f]) for f in fields))

    outcomes: dict[FieldContext, Outcome] = {}
    pending: dict[FieldContext, str] = {}
    for field, outcome in zip(fields, submitted):
        match outcome:
            case Pending(handle=handle):
                pending[field] = handle
            case Immediate(result=result):
                outcomes[field] = result
            case Failed(error=err):
                outcomes[field] = err

    if pending:
        outcomes.update(await client.poll_many(pending, max_rounds))

    return {field: _finish(field, outcomes[field]) for field in fields}


async def generate_for_image(
    client: VisionatiClient,
    config: Config,
    path: Union[str, Path],
    fields: Iterable[FieldContext],
    max_rounds: Optional[int] = None,
) -> dict[FieldContext, Outcome]:
    requests = {field: request_for_field(config, path, field) for field in dict.fromkeys(fields)}
    return await generate_fields(client, requests, max_rounds)


def latest_credits(outcomes: Iterable[Outcome]) -> Optional[int]:
    """Last credit balance reported by any outcome, success or error."""
    credits = None
    for outcome in outcomes:
        if outcome.credits is not None:
            credits = outcome.credits
    return credits


def should_halt_batch(outcomes: Iterable[Outcome]) -> bool:
    """True when any outcome says the account ran out of credits."""
    return any(isinstance(o, JobError) and is_credit_error(o) for o in outcomes)
