from __future__ import annotations

import logging
import os

from statustree.core.errors import MalformedPathError
from statustree.core.paths import check_base_path


DEFAULT_MAX_RECORDS = 10000
DEFAULT_LOG_LEVEL = "INFO"


def configured_api_key() -> str:
    return os.getenv("STATUSTREE_API_KEY", "")


def configured_base_path() -> str:
    # Validated lazily so a bad value surfaces on /ready and on tree requests.
    return os.getenv("STATUSTREE_BASE_PATH", "").strip()


def parse_max_records(raw: str | None) -> int:
    if not raw or not raw.strip():
        return DEFAULT_MAX_RECORDS
    try:
        value = int(raw.strip())
    except ValueError:
        return DEFAULT_MAX_RECORDS
    return value if value > 0 else DEFAULT_MAX_RECORDS


def configured_max_records() -> int:
    return parse_max_records(os.getenv("STATUSTREE_MAX_RECORDS"))


def parse_log_level(raw: str | None) -> str:
    level = (raw or "").strip().upper()
    # getLevelName maps known names to their number and anything else to a string
    if level and isinstance(logging.getLevelName(level), int):
        return level
    return DEFAULT_LOG_LEVEL


def configured_log_level() -> str:
    return parse_log_level(os.getenv("STATUSTREE_LOG_LEVEL"))


def config_problems() -> list[str]:
    problems: list[str] = []
    try:
        check_base_path(configured_base_path())
    except MalformedPathError as e:
        problems.append(f"STATUSTREE_BASE_PATH invalid: {e}")
    raw_level = (os.getenv("STATUSTREE_LOG_LEVEL") or "").strip()
    if raw_level and parse_log_level(raw_level) != raw_level.upper():
        problems.append(f"STATUSTREE_LOG_LEVEL invalid: unknown level '{raw_level}', using {DEFAULT_LOG_LEVEL}")
    return problems
