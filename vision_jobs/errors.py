"""JobError — typed failure values returned (not raised) by the job client."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from vision_jobs.constants import CREDIT_ERROR_MARKERS


class ErrorKind(str, Enum):
    NO_CREDENTIAL = "no_credential"
    NOT_FOUND = "not_found"
    UNSUPPORTED_FORMAT = "unsupported_format"
    TOO_LARGE = "too_large"
    RESOURCE_UNREADABLE = "resource_unreadable"
    RESOURCE_EMPTY = "resource_empty"
    RESOURCE_READ_ERROR = "resource_read_error"
    TRANSPORT_FAILURE = "transport_failure"
    HTTP_ERROR = "http_error"
    MALFORMED_RESPONSE = "malformed_response"
    PERSISTENT_MALFORMED_RESPONSE = "persistent_malformed_response"
    SERVICE_REPORTED_ERROR = "service_reported_error"
    EMPTY_RESULT = "empty_result"
    UNEXPECTED_RESPONSE_SHAPE = "unexpected_response_shape"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class JobError:
    kind: ErrorKind
    detail: str
    credits: Optional[int] = None

    @property
    def status(self) -> str:
        return "error"

    def __str__(self) -> str:
        return self.detail


def is_credit_error(error: JobError) -> bool:
    """True when the service rejected a job because the account is out of credits.

    The service has no structured code for this, so the check matches message
    text and will miss a rephrased upstream message.
    """
    match error.kind:
        case ErrorKind.SERVICE_REPORTED_ERROR:
            lower = error.detail.lower()
            return any(marker in lower for marker in CREDIT_ERROR_MARKERS)
        case _:
            return False
