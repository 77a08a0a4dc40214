import json
from pathlib import Path

import httpx
import pytest

from vision_jobs.client import VisionatiClient

API_BASE = "https://api.test"
SUBMIT_URL = f"{API_BASE}/api/fetch"


def handle_url(name: str) -> str:
    return f"{API_BASE}/api/response/{name}"


def completed(text: str, *, source: str = "gemini", credits: int = 42) -> dict:
    return {
        "status": "completed",
        "credits": credits,
        "all": {"assets": [{"name": "photo.png", "descriptions": [{"description": text, "source": source}]}]},
    }


class ScriptedService:
    """Fake Visionati API: each URL replays a script of responses, the last one repeating.

    A step is a dict (JSON 200), a (status, body) tuple, or an exception to raise.
    """

    def __init__(self) -> None:
        self.scripts: dict[str, list] = {}
        self.submit_by_role: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []

    def script(self, url: str, *steps) -> None:
        self.scripts.setdefault(url, []).extend(steps)

    def answer_role(self, role: str, body: dict) -> None:
        """Answer submits carrying this role with body, whatever order they arrive in."""
        self.submit_by_role[role] = body

    def calls_to(self, url: str) -> int:
        return sum(1 for r in self.requests if str(r.url) == url)

    def submitted_bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if str(r.url) == SUBMIT_URL]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) == SUBMIT_URL and self.submit_by_role:
            role = json.loads(request.content).get("role")
            return httpx.Response(200, json=self.submit_by_role[role])
        steps = self.scripts[str(request.url)]
        step = steps.pop(0) if len(steps) > 1 else steps[0]
        match step:
            case Exception():
                raise step
            case (int() as status, str() | bytes() as body):
                return httpx.Response(status, content=body)
            case dict():
                return httpx.Response(200, json=step)
        raise AssertionError(f"bad script step: {step!r}")


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def service() -> ScriptedService:
    return ScriptedService()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_client(service, sleeper):
    def _make(api_key: str = "test-key", **kwargs) -> VisionatiClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(service.handler))
        return VisionatiClient(api_key, api_base=API_BASE, http_client=http, sleep=sleeper, **kwargs)

    return _make


@pytest.fixture
def image_path(tmp_path) -> Path:
    path = tmp_path / "photo.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\nfake-image-bytes")
    return path
