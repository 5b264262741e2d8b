from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from statustree.core.errors import MalformedPathError


SEPARATOR = "/"


def record_path(record: Any) -> str:
    """Return the path a record carries, as a mapping key or an attribute."""
    if isinstance(record, Mapping):
        if "path" not in record:
            raise MalformedPathError("record has no 'path' field")
        path = record["path"]
    else:
        try:
            path = record.path
        except AttributeError:
            raise MalformedPathError(f"record {type(record).__name__} has no 'path' attribute") from None
    if not isinstance(path, str):
        raise MalformedPathError(f"path must be a string, got {type(path).__name__}", path)
    return path


def split_segments(path: str) -> list[str]:
    """Split a repository path into segments, rejecting anything not well formed.

    A well formed path is non-empty, has no leading or trailing separator and
    no empty segment in between. Nothing is normalised.
    """
    if not path:
        raise MalformedPathError("path is empty", path)
    if path.startswith(SEPARATOR):
        raise MalformedPathError(f"path '{path}' has a leading '{SEPARATOR}'", path)
    if path.endswith(SEPARATOR):
        raise MalformedPathError(f"path '{path}' has a trailing '{SEPARATOR}'", path)
    segments = path.split(SEPARATOR)
    if not all(segments):
        raise MalformedPathError(f"path '{path}' contains an empty segment", path)
    return segments


def path_depth(path: str) -> int:
    return len(split_segments(path))


def check_base_path(base_path: str | None) -> str:
    """Empty means the repository sits at the vault root."""
    if not base_path:
        return ""
    split_segments(base_path)
    return base_path


def vault_path(path: str, base_path: str | None = None) -> str:
    if base_path:
        return f"{base_path}{SEPARATOR}{path}"
    return path


def repository_relative_path(path: str, base_path: str | None, relative_to_vault: bool) -> str:
    if not relative_to_vault or not base_path:
        return path
    prefix = f"{base_path}{SEPARATOR}"
    if not path.startswith(prefix):
        raise MalformedPathError(f"path '{path}' is outside the base path '{base_path}'", path)
    return path[len(prefix) :]
