#!/usr/bin/python3
"""
This script strips the leading indented line of the first code block in a
text file and writes the result to the output file.

The source file defaults to "code" in the working directory.
"""

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_FILE = "code"
MISSING_DESTINATION_MESSAGE = "not filename..."

# A line starting with spaces, then whatever follows it (lazily, so nothing).
PATTERN = re.compile(r"^ +.*?\n(.*?)", re.MULTILINE)
REPLACEMENT = r"\1"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class CodeReplaceError(Exception):
    """Base error for a failed run."""


class SourceFileUnreadable(CodeReplaceError):
    pass


class WriteFailure(CodeReplaceError):
    pass


class Settings(BaseSettings):
    """Run settings, taken from command line values only."""

    model_config = SettingsConfigDict(extra="ignore")

    source_file: Path = Field(
        default=Path(DEFAULT_SOURCE_FILE),
        description="Text file to read, relative to the working directory.",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL.",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # The environment is not an input
        return (init_settings,)


def get_settings(**overrides) -> Settings:
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def configure_logging(level):
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)


def read_document(path):
    try:
        with open(path, encoding="utf-8", errors="surrogateescape", newline="") as f:
            text = f.read()
    except OSError as e:
        raise SourceFileUnreadable(f"cannot read source file {path}: {e}") from e

    logger.debug("Read %d characters from %s", len(text), path)
    return text


def count_blocks(text):
    return sum(1 for _ in PATTERN.finditer(text))


def transform(text):
    """Strip the first indented line, keeping what follows it.

    Only the first match is replaced. Text without a line starting with a
    space is returned as is.
    """
    return PATTERN.sub(REPLACEMENT, text, count=1)


def write_document(path, text):
    try:
        with open(path, "w", encoding="utf-8", errors="surrogateescape", newline="") as f:
            f.write(text)
    except OSError as e:
        raise WriteFailure(f"cannot write output file {path}: {e}") from e

    logger.debug("Wrote %d characters to %s", len(text), path)


def replace_code(source, destination):
    """Run the read, transform and write steps.

    The source is read before the destination is touched, so a failed read
    leaves any existing output file alone.

    Returns:
        The number of blocks stripped, 0 or 1.
    """
    text = read_document(source)

    found = count_blocks(text)
    if found > 1:
        logger.warning("Found %d indented blocks in %s, only the first is stripped", found, source)

    write_document(destination, transform(text))

    stripped = min(found, 1)
    logger.info("Stripped %d block(s) from %s into %s", stripped, source, destination)
    return stripped


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("output_file", nargs="?", default="")
    parser.add_argument("--source", default=None,
                        help=f"Source text file (default: {DEFAULT_SOURCE_FILE})")
    parser.add_argument("--log-level", default=None, type=str.upper, choices=LOG_LEVELS)

    args = parser.parse_args(argv)
    return args


def main(argv=None):
    args = parse_args(argv)

    if not args.output_file:
        print(MISSING_DESTINATION_MESSAGE)
        return 0

    settings = get_settings(source_file=args.source, log_level=args.log_level)
    configure_logging(settings.log_level)

    try:
        replace_code(settings.source_file, args.output_file)
    except CodeReplaceError as e:
        logger.error("%s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
