"""Entry point — wires Config → VisionatiClient → generate_for_image."""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from vision_jobs.client import VisionatiClient
from vision_jobs.config import Config
from vision_jobs.constants import (
    MSG_CLI_CREDITS,
    MSG_CLI_FIELD_FAIL,
    MSG_CLI_FIELD_OK,
    MSG_CLI_OUT_OF_CREDITS,
    MSG_CLI_STARTING,
    UPLOAD_MAX_ROUNDS,
)
from vision_jobs.errors import JobError
from vision_jobs.fields import FieldContext, generate_for_image, latest_credits, should_halt_batch


def _setup_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    list(map(root.removeHandler, root.handlers[:]))
    root.addHandler(RichHandler(rich_tracebacks=True))


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="vision-jobs",
        description="Generate alt text, captions and descriptions for an image.",
    )
    parser.add_argument("image", type=Path)
    parser.add_argument(
        "--field",
        dest="fields",
        action="append",
        choices=[f.value for f in FieldContext],
        help="field to generate (repeatable, default: alt_text)",
    )
    parser.add_argument("--max-rounds", type=int, default=None)
    parser.add_argument(
        "--upload",
        action="store_true",
        help=f"use the upload-time budget of {UPLOAD_MAX_ROUNDS} rounds unless --max-rounds is given",
    )
    return parser.parse_args(argv)


async def run(config: Config, image: Path, fields: list[FieldContext], max_rounds: int | None) -> int:
    console = Console()
    async with VisionatiClient.from_config(config) as client:
        outcomes = await generate_for_image(client, config, image, fields, max_rounds)

    failed = False
    for field, outcome in outcomes.items():
        match outcome:
            case JobError() as err:
                failed = True
                console.print(MSG_CLI_FIELD_FAIL % (field.value, err.detail), style="red")
            case result:
                console.print(MSG_CLI_FIELD_OK % (field.value, result.text))

    if should_halt_batch(outcomes.values()):
        console.print(MSG_CLI_OUT_OF_CREDITS, style="yellow")
    match latest_credits(outcomes.values()):
        case None:
            pass
        case credits:
            console.print(MSG_CLI_CREDITS % credits, style="dim")

    return 1 if failed else 0


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    config = Config.from_env()
    _setup_logging(config.log_level)

    fields = [FieldContext(f) for f in args.fields or [FieldContext.ALT_TEXT.value]]
    logger = logging.getLogger(__name__)
    logger.info(MSG_CLI_STARTING, ", ".join(f.value for f in fields), args.image)

    max_rounds = args.max_rounds
    if max_rounds is None and args.upload:
        max_rounds = UPLOAD_MAX_ROUNDS

    sys.exit(asyncio.run(run(config, args.image, fields, max_rounds)))


if __name__ == "__main__":
    main()
