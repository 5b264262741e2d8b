from __future__ import annotations

import json
import logging
from collections import Counter
from collections.abc import Callable, Sequence
from typing import Any

from pydantic import BaseModel

from statustree.core.config import configured_base_path, configured_max_records
from statustree.core.errors import (
    APIError,
    DuplicatePathError,
    MalformedPathError,
    PathTreeError,
    TreeInvariantError,
)
from statustree.core.paths import SEPARATOR, check_base_path, repository_relative_path, vault_path
from statustree.models import (
    FileStatus,
    StatusPayload,
    StatusTreeResponse,
    TreeNodeModel,
    TreeRequest,
    TreeResponse,
    TreeStats,
)
from statustree.path_tree import DirectoryNode, LeafNode, TreeNode, build_tree, iter_nodes


logger = logging.getLogger("statustree")

_STATUS_BY_ERROR: list[tuple[type[PathTreeError], int]] = [
    (MalformedPathError, 400),
    (DuplicatePathError, 409),
    (TreeInvariantError, 500),
]


def map_tree_error(err: PathTreeError) -> APIError:
    status_code = next((code for cls, code in _STATUS_BY_ERROR if isinstance(err, cls)), 500)
    details = {"path": err.path} if isinstance(err.path, str) else None
    return APIError(status_code, err.code, err.message, details)


def resolve_base_path(override: str | None = None) -> str:
    raw = (override if override is not None else configured_base_path()).strip()
    try:
        return check_base_path(raw)
    except MalformedPathError as e:
        raise APIError(400, "bad_base_path", e.message, {"base_path": raw})


def check_record_count(count: int) -> None:
    limit = configured_max_records()
    if count > limit:
        raise APIError(
            413,
            "too_many_records",
            f"{count} records exceed the limit of {limit}",
            {"count": count, "limit": limit},
        )


def _build(records: Sequence[Any], label: str) -> list[TreeNode[Any]]:
    try:
        return build_tree(records)
    except TreeInvariantError as e:
        logger.error(json.dumps({"msg": "tree_invariant", "tree": label, "error": e.message}))
        raise map_tree_error(e)
    except PathTreeError as e:
        logger.warning(json.dumps({"msg": "tree_rejected", "tree": label, "code": e.code, "error": e.message}))
        raise map_tree_error(e)


def _node_model(
    node: TreeNode[Any],
    base_path: str,
    dump: Callable[[Any], dict[str, Any]],
) -> TreeNodeModel:
    if isinstance(node, LeafNode):
        return TreeNodeModel(
            title=node.title,
            path=node.path,
            vault_path=vault_path(node.path, base_path),
            data=dump(node.data),
        )
    return TreeNodeModel(
        title=node.title,
        path=node.path,
        vault_path=vault_path(node.path, base_path),
        children=[],
    )


def to_node_model(
    node: TreeNode[Any],
    base_path: str,
    dump: Callable[[Any], dict[str, Any]],
) -> TreeNodeModel:
    root = _node_model(node, base_path, dump)
    stack = [(node, root)]
    while stack:
        current, model = stack.pop()
        if not isinstance(current, DirectoryNode):
            continue
        for child in current.children:
            child_model = _node_model(child, base_path, dump)
            model.children.append(child_model)
            stack.append((child, child_model))
    return root


def tree_stats(tree: Sequence[TreeNode[Any]]) -> TreeStats:
    directory_count = 0
    roots: Counter[str] = Counter()
    for node in iter_nodes(tree):
        if isinstance(node, DirectoryNode):
            directory_count += 1
        else:
            roots[node.path.split(SEPARATOR, 1)[0]] += 1
    return TreeStats(
        record_count=sum(roots.values()),
        directory_count=directory_count,
        root_counts={key: roots[key] for key in sorted(roots)},
    )


def _tree_response(
    records: Sequence[BaseModel],
    base_path: str,
    dump: Callable[[Any], dict[str, Any]],
    label: str,
) -> TreeResponse:
    tree = _build(records, label)
    stats = tree_stats(tree)
    logger.info(json.dumps({
        "msg": "tree_built",
        "tree": label,
        "records": stats.record_count,
        "directories": stats.directory_count,
    }))
    return TreeResponse(tree=[to_node_model(node, base_path, dump) for node in tree], stats=stats)


def _dump_record(record: BaseModel) -> dict[str, Any]:
    return record.model_dump()


def _dump_status(status: FileStatus) -> dict[str, Any]:
    return status.model_dump(by_alias=True, exclude_none=True)


def build_record_tree(req: TreeRequest, base_path: str | None = None) -> TreeResponse:
    base = resolve_base_path(base_path)
    check_record_count(len(req.records))
    return _tree_response(req.records, base, _dump_record, "records")


def _repository_relative(
    statuses: Sequence[FileStatus],
    base_path: str,
    relative_to_vault: bool,
) -> list[FileStatus]:
    if not relative_to_vault:
        return list(statuses)
    out: list[FileStatus] = []
    try:
        for status in statuses:
            update = {"path": repository_relative_path(status.path, base_path, True)}
            if status.from_path:
                update["from_path"] = repository_relative_path(status.from_path, base_path, True)
            out.append(status.model_copy(update=update))
    except MalformedPathError as e:
        raise map_tree_error(e)
    return out


def build_status_tree(
    payload: StatusPayload,
    base_path: str | None = None,
    relative_to_vault: bool = False,
) -> StatusTreeResponse:
    base = resolve_base_path(base_path)
    check_record_count(len(payload.staged) + len(payload.changed))
    staged = _repository_relative(payload.staged, base, relative_to_vault)
    changed = _repository_relative(payload.changed, base, relative_to_vault)
    return StatusTreeResponse(
        staged=_tree_response(staged, base, _dump_status, "staged"),
        changed=_tree_response(changed, base, _dump_status, "changed"),
    )
