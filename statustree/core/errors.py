from __future__ import annotations

from typing import Any


class APIError(Exception):
    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details


class PathTreeError(Exception):
    code = "path_tree_error"

    def __init__(self, message: str, path: object = None):
        super().__init__(message)
        self.message = message
        self.path = path


class MalformedPathError(PathTreeError):
    code = "malformed_path"


class DuplicatePathError(PathTreeError):
    code = "duplicate_path"


class TreeInvariantError(PathTreeError):
    code = "tree_invariant"
