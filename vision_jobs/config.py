from dataclasses import dataclass
from typing import Optional
import os
from dotenv import load_dotenv

from vision_jobs.constants import (
    BACKENDS,
    DEFAULT_API_BASE,
    DEFAULT_BACKEND,
    DEFAULT_LANGUAGE,
    HTTP_TIMEOUT,
    LANGUAGES,
    MAX_POLL_ROUNDS,
    POLL_INTERVAL,
    ROLES,
)


@dataclass(frozen=True)
class FieldSettings:
    role: str
    prompt: str = ""
    backend: Optional[str] = None


@dataclass(frozen=True)
class Config:
    api_key: str
    api_base: str
    backend: str
    language: str
    log_level: str
    http_timeout: float
    poll_interval: float
    max_poll_rounds: int
    alt_text: FieldSettings
    caption: FieldSettings
    description: FieldSettings

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()

        def field(name: str, default_role: str) -> FieldSettings:
            return FieldSettings(
                role=os.getenv(f"VISIONATI_ROLE_{name}", default_role),
                prompt=os.getenv(f"VISIONATI_PROMPT_{name}", "").strip(),
                backend=os.getenv(f"VISIONATI_BACKEND_{name}") or None,
            )

        return cls._validate(
            api_key=os.getenv("VISIONATI_API_KEY", "").strip(),
            api_base=os.getenv("VISIONATI_API_BASE", DEFAULT_API_BASE).rstrip("/"),
            backend=os.getenv("VISIONATI_BACKEND", DEFAULT_BACKEND),
            language=os.getenv("VISIONATI_LANGUAGE", DEFAULT_LANGUAGE),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            http_timeout=_number("VISIONATI_HTTP_TIMEOUT", HTTP_TIMEOUT, float),
            poll_interval=_number("VISIONATI_POLL_INTERVAL", POLL_INTERVAL, float),
            max_poll_rounds=_number("VISIONATI_MAX_POLL_ROUNDS", MAX_POLL_ROUNDS, int),
            alt_text=field("ALT_TEXT", "alttext"),
            caption=field("CAPTION", "caption"),
            description=field("DESCRIPTION", "general"),
        )

    @staticmethod
    def _validate(
        api_key: str,
        api_base: str,
        backend: str,
        language: str,
        log_level: str,
        http_timeout: float,
        poll_interval: float,
        max_poll_rounds: int,
        alt_text: FieldSettings,
        caption: FieldSettings,
        description: FieldSettings,
    ) -> "Config":
        match backend:
            case b if b in BACKENDS:
                pass
            case _:
                raise ValueError(f"VISIONATI_BACKEND must be one of {', '.join(BACKENDS)}")

        match language:
            case lang if lang in LANGUAGES:
                pass
            case _:
                raise ValueError(f"VISIONATI_LANGUAGE is not a supported language: {language}")

        for name, settings in (
            ("ALT_TEXT", alt_text),
            ("CAPTION", caption),
            ("DESCRIPTION", description),
        ):
            if settings.role not in ROLES:
                raise ValueError(f"VISIONATI_ROLE_{name} is not a known role: {settings.role}")
            if settings.backend is not None and settings.backend not in BACKENDS:
                raise ValueError(
                    f"VISIONATI_BACKEND_{name} is not a known backend: {settings.backend}"
                )

        if max_poll_rounds < 1:
            raise ValueError("VISIONATI_MAX_POLL_ROUNDS must be at least 1")

        return Config(
            api_key=api_key,
            api_base=api_base,
            backend=backend,
            language=language,
            log_level=log_level,
            http_timeout=http_timeout,
            poll_interval=poll_interval,
            max_poll_rounds=max_poll_rounds,
            alt_text=alt_text,
            caption=caption,
            description=description,
        )


def _number(name: str, default, cast):
    raw = os.getenv(name)
    match raw:
        case None | "":
            return default
        case value:
            try:
                return cast(value)
            except ValueError:
                raise ValueError(f"{name} must be a number, got {value!r}") from None
