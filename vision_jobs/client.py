"""VisionatiClient — submits analysis jobs and drives them to completion.

Submitting returns almost instantly with a handle; the answer is fetched by
polling that handle. poll_many() checks every pending handle once per round
(concurrently) and sleeps once between rounds, so N jobs cost about the wall
time of the slowest one rather than the sum of all of them.
"""
import asyncio
import logging
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Generic, Hashable, Mapping, Optional, TypeVar, Union

import httpx

from vision_jobs.config import Config
from vision_jobs.constants import (
    ACCESS_DENIED_MARKER,
    API_KEY_HEADER,
    API_KEY_SCHEME,
    CONNECTION_TEST_TIMEOUT,
    DEFAULT_API_BASE,
    DEFAULT_BACKEND,
    DEFAULT_FEATURES,
    DEFAULT_LANGUAGE,
    DEFAULT_ROLE,
    HTTP_TIMEOUT,
    LOG_POLL_FAILED,
    LOG_POLL_MALFORMED,
    LOG_POLL_PENDING,
    LOG_POLL_RESOLVED,
    LOG_POLL_TIMEOUT,
    LOG_POLL_TRANSPORT,
    LOG_ROUND_DONE,
    LOG_SUBMIT_ACCEPTED,
    LOG_SUBMIT_FAILED,
    LOG_SUBMIT_IMMEDIATE,
    MALFORMED_RESPONSE_LIMIT,
    MAX_FILE_SIZE,
    MAX_POLL_ROUNDS,
    MSG_CONNECTION_FAILED,
    MSG_FILE_NOT_FOUND,
    MSG_FILE_TOO_LARGE,
    MSG_HTTP_ERROR,
    MSG_INVALID_HANDLE,
    MSG_INVALID_JSON,
    MSG_NO_API_KEY,
    MSG_PERSISTENT_INVALID,
    MSG_POLL_INVALID_JSON,
    MSG_REQUEST_FAILED,
    MSG_TIMEOUT,
    MSG_UNEXPECTED_POLL,
    MSG_UNEXPECTED_SUBMIT,
    MSG_UNSUPPORTED_FORMAT,
    POLL_INTERVAL,
    SUBMIT_PATH,
    SUPPORTED_MIME_TYPES,
)
from vision_jobs.encoder import EncoderCache
from vision_jobs.errors import ErrorKind, JobError
from vision_jobs.protocol import (
    Accepted,
    Completed,
    InProgress,
    Inline,
    Malformed,
    ParsedResponse,
    ServiceError,
    Unrecognized,
    parse_response,
)
from vision_jobs.results import JobResult, resolve_completed

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
Outcome = Union[JobResult, JobError]
Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class AnalysisRequest:
    """One "analyze this image" request.

    A non-empty prompt replaces the role. backend=None falls back to the
    client's default backend, language=None to its default language.
    """

    path: Union[str, Path]
    role: str = DEFAULT_ROLE
    prompt: str = ""
    language: Optional[str] = None
    backend: Optional[str] = None
    features: tuple[str, ...] = DEFAULT_FEATURES
    mime_type: Optional[str] = None

    @property
    def uses_prompt(self) -> bool:
        return bool(self.prompt.strip())


# ── submit outcomes ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Immediate:
    result: JobResult


@dataclass(frozen=True)
class Pending:
    handle: str


@dataclass(frozen=True)
class Failed:
    error: JobError


SubmitOutcome = Union[Immediate, Pending, Failed]


# ── polling state machine ─────────────────────────────────────────────────────


@dataclass
class PollSession(Generic[K]):
    """State of one poll_many() run. Never shared between runs."""

    pending: dict[K, str]
    results: dict[K, Outcome] = field(default_factory=dict)
    last_errors: dict[K, str] = field(default_factory=dict)
    malformed: dict[K, int] = field(default_factory=dict)
    rounds: int = 0

    def resolve(self, key: K, outcome: Outcome) -> None:
        self.results[key] = outcome
        self.pending.pop(key, None)
        match outcome:
            case JobError() as err:
                logger.warning(LOG_POLL_FAILED, key, err.detail)
            case _:
                logger.info(LOG_POLL_RESOLVED, key, self.rounds)

    def observe(self, key: K, observation: Union[ParsedResponse, JobError]) -> None:
        """Apply one poll observation to one job."""
        match observation:
            case JobError(kind=ErrorKind.TRANSPORT_FAILURE) as err:
                self.last_errors[key] = err.detail
                logger.debug(LOG_POLL_TRANSPORT, key, err.detail)
                return
            case Malformed():
                count = self.malformed.get(key, 0) + 1
                self.malformed[key] = count
                self.last_errors[key] = MSG_POLL_INVALID_JSON
                logger.debug(LOG_POLL_MALFORMED, key, count)
                if count >= MALFORMED_RESPONSE_LIMIT:
                    self.resolve(
                        key, JobError(ErrorKind.PERSISTENT_MALFORMED_RESPONSE, MSG_PERSISTENT_INVALID)
                    )
                return
            case _:
                self.malformed[key] = 0

        match observation:
            case JobError() as err:
                self.resolve(key, err)
            case ServiceError(message=message, credits=credits):
                self.resolve(key, JobError(ErrorKind.SERVICE_REPORTED_ERROR, message, credits))
            case Inline(credits=credits) | Accepted(credits=credits):
                self.resolve(
                    key, JobError(ErrorKind.UNEXPECTED_RESPONSE_SHAPE, MSG_UNEXPECTED_POLL, credits)
                )
            case Completed() as completed:
                self.resolve(key, resolve_completed(completed))
            case InProgress(status=status):
                logger.debug(LOG_POLL_PENDING, key, status)
            case Unrecognized():
                self.resolve(key, JobError(ErrorKind.UNEXPECTED_RESPONSE_SHAPE, MSG_UNEXPECTED_POLL))
            case other:
                raise TypeError(f"Unhandled poll observation: {other!r}")

    def expire(self) -> None:
        """Force every still-pending job to TIMEOUT, keeping its last transient error."""
        for key in list(self.pending):
            detail = self.last_errors.get(key)
            message = f"{MSG_TIMEOUT} {detail}" if detail else MSG_TIMEOUT
            logger.warning(LOG_POLL_TIMEOUT, key, self.rounds)
            self.results[key] = JobError(ErrorKind.TIMEOUT, message)
        self.pending.clear()


# ── client ────────────────────────────────────────────────────────────────────


class VisionatiClient:

    def __init__(
        self,
        api_key: str,
        *,
        api_base: str = DEFAULT_API_BASE,
        default_backend: str = DEFAULT_BACKEND,
        default_language: str = DEFAULT_LANGUAGE,
        timeout: float = HTTP_TIMEOUT,
        poll_interval: float = POLL_INTERVAL,
        max_poll_rounds: int = MAX_POLL_ROUNDS,
        http_client: Optional[httpx.AsyncClient] = None,
        encoder: Optional[EncoderCache] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._api_key = api_key
        self._submit_url = api_base.rstrip("/") + SUBMIT_PATH
        self._default_backend = default_backend
        self._default_language = default_language
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._max_poll_rounds = max_poll_rounds
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._encoder = encoder or EncoderCache()
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: Config, **kwargs: Any) -> "VisionatiClient":
        return cls(
            config.api_key,
            api_base=config.api_base,
            default_backend=config.backend,
            default_language=config.language,
            timeout=config.http_timeout,
            poll_interval=config.poll_interval,
            max_poll_rounds=config.max_poll_rounds,
            **kwargs,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "VisionatiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    @property
    def encoder(self) -> EncoderCache:
        return self._encoder

    def _headers(self) -> dict[str, str]:
        return {API_KEY_HEADER: f"{API_KEY_SCHEME} {self._api_key}"}

    # ── submission ────────────────────────────────────────────────────────────

    @staticmethod
    def validate_resource(path: Union[str, Path], mime_type: Optional[str] = None) -> Optional[JobError]:
        """Return the reason a file cannot be submitted, or None if it can."""
        path = Path(path)
        if not path.is_file():
            return JobError(ErrorKind.NOT_FOUND, MSG_FILE_NOT_FOUND % path.name)

        mime = mime_type or mimetypes.guess_type(path.name)[0]
        if mime not in SUPPORTED_MIME_TYPES:
            return JobError(ErrorKind.UNSUPPORTED_FORMAT, MSG_UNSUPPORTED_FORMAT % (mime or "unknown"))

        size = path.stat().st_size
        if size > MAX_FILE_SIZE:
            return JobError(ErrorKind.TOO_LARGE, MSG_FILE_TOO_LARGE % (size / 1048576))

        return None

    def build_payload(self, request: AnalysisRequest, encoded: str) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "file": [encoded],
            "file_name": [Path(request.path).name],
            "feature": list(request.features),
            "role": request.role,
            "language": request.language or self._default_language,
        }
        if request.uses_prompt:
            payload["prompt"] = request.prompt
        backend = request.backend or self._default_backend
        if backend:
            payload["backend"] = [backend]
        return payload

    async def submit(self, request: AnalysisRequest) -> SubmitOutcome:
        name = Path(request.path).name
        if not self._api_key:
            return Failed(JobError(ErrorKind.NO_CREDENTIAL, MSG_NO_API_KEY))

        match self.validate_resource(request.path, request.mime_type):
            case JobError() as err:
                logger.warning(LOG_SUBMIT_FAILED, name, err.detail)
                return Failed(err)
            case None:
                pass

        match self._encoder.encode(request.path):
            case JobError() as err:
                logger.warning(LOG_SUBMIT_FAILED, name, err.detail)
                return Failed(err)
            case encoded:
                payload = self.build_payload(request, encoded)

        try:
            response = await self._http.post(
                self._submit_url, json=payload, headers=self._headers(), timeout=self._timeout
            )
        except httpx.HTTPError as exc:
            err = JobError(ErrorKind.TRANSPORT_FAILURE, MSG_REQUEST_FAILED % _describe(exc))
            logger.warning(LOG_SUBMIT_FAILED, name, err.detail)
            return Failed(err)

        outcome = self._classify_submit(response)
        match outcome:
            case Pending(handle=handle):
                logger.info(LOG_SUBMIT_ACCEPTED, name, handle)
            case Immediate():
                logger.info(LOG_SUBMIT_IMMEDIATE, name)
            case Failed(error=err):
                logger.warning(LOG_SUBMIT_FAILED, name, err.detail)
        return outcome

    @staticmethod
    def _classify_submit(response: httpx.Response) -> SubmitOutcome:
        match parse_response(response.content):
            case Malformed():
                return Failed(JobError(ErrorKind.MALFORMED_RESPONSE, MSG_INVALID_JSON))
            case ServiceError(message=message, credits=credits):
                return Failed(JobError(ErrorKind.SERVICE_REPORTED_ERROR, message, credits))
            case _ if not response.is_success:
                return Failed(JobError(ErrorKind.HTTP_ERROR, MSG_HTTP_ERROR % response.status_code))
            case Accepted(handle=handle):
                return Pending(handle)
            case Completed() as completed:
                match resolve_completed(completed):
                    case JobResult() as result:
                        return Immediate(result)
                    case JobError() as err:
                        return Failed(err)
            case InProgress() | Unrecognized():
                return Failed(JobError(ErrorKind.UNEXPECTED_RESPONSE_SHAPE, MSG_UNEXPECTED_SUBMIT))
        raise AssertionError("unreachable")

    # ── polling ───────────────────────────────────────────────────────────────

    async def _fetch(self, handle: str) -> Union[ParsedResponse, JobError]:
        try:
            response = await self._http.get(handle, headers=self._headers(), timeout=self._timeout)
        except (httpx.InvalidURL, ValueError) as exc:
            return JobError(ErrorKind.UNEXPECTED_RESPONSE_SHAPE, MSG_INVALID_HANDLE % _describe(exc))
        except httpx.HTTPError as exc:
            return JobError(ErrorKind.TRANSPORT_FAILURE, _describe(exc))
        return parse_response(response.content)

    async def poll_many(
        self, handles: Mapping[K, str], max_rounds: Optional[int] = None
    ) -> dict[K, Outcome]:
        """Poll every handle round-robin until all resolve or the round budget runs out.

        Returns one outcome per key. Jobs still pending after max_rounds
        become TIMEOUT errors carrying their last transient error, if any.
        """
        budget = self._max_poll_rounds if max_rounds is None else max_rounds
        session: PollSession[K] = PollSession(pending=dict(handles))

        while session.pending and session.rounds < budget:
            if session.rounds:
                await self._sleep(self._poll_interval)
            session.rounds += 1

            keys = list(session.pending)
            observations = await asyncio.gather(*(self._fetch(session.pending[k]) for k in keys))
            for key, observation in zip(keys, observations):
                session.observe(key, observation)
            logger.info(LOG_ROUND_DONE, session.rounds, len(session.pending))

        session.expire()
        return {key: session.results[key] for key in handles}

    async def poll(self, handle: str, max_rounds: Optional[int] = None) -> Outcome:
        results = await self.poll_many({handle: handle}, max_rounds)
        return results[handle]

    async def analyze(self, request: AnalysisRequest, max_rounds: Optional[int] = None) -> Outcome:
        """Submit one request and wait for its outcome."""
        match await self.submit(request):
            case Immediate(result=result):
                return result
            case Failed(error=err):
                return err
            case Pending(handle=handle):
                return await self.poll(handle, max_rounds)
        raise AssertionError("unreachable")

    # ── connection test ───────────────────────────────────────────────────────

    async def test_connection(self) -> Optional[JobError]:
        """Check the API key with an empty submit. None means the key was accepted.

        A valid key gets "File/URL params are required." back; a bad one
        gets "Access denied.".
        """
        if not self._api_key:
            return JobError(ErrorKind.NO_CREDENTIAL, MSG_NO_API_KEY)

        try:
            response = await self._http.post(
                self._submit_url, json={}, headers=self._headers(), timeout=CONNECTION_TEST_TIMEOUT
            )
        except httpx.HTTPError as exc:
            return JobError(ErrorKind.TRANSPORT_FAILURE, MSG_CONNECTION_FAILED % _describe(exc))

        match parse_response(response.content):
            case Malformed():
                return JobError(ErrorKind.MALFORMED_RESPONSE, MSG_INVALID_JSON)
            case ServiceError(message=message) if ACCESS_DENIED_MARKER in message:
                return JobError(ErrorKind.SERVICE_REPORTED_ERROR, message)
            case _:
                return None


def _describe(exc: Exception) -> str:
    return str(exc) or type(exc).__name__
