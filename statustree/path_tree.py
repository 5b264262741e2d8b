"""Group flat path-bearing records into a collapsed, sorted directory tree.

``build_tree(records)`` runs two passes: records are first grouped by path
segment into a raw tree, then every directory that only wraps a single
subdirectory is folded into it ("a" + "b" becomes "a/b") and siblings are
sorted directories first, then by title.
"""

from __future__ import annotations

import unicodedata
from collections import deque
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

from statustree.core.errors import DuplicatePathError, MalformedPathError, TreeInvariantError
from statustree.core.paths import SEPARATOR, record_path, split_segments


T = TypeVar("T")


@dataclass
class LeafNode(Generic[T]):
    title: str
    path: str
    data: T


@dataclass
class DirectoryNode(Generic[T]):
    title: str
    path: str
    children: list[TreeNode[T]] = field(default_factory=list)


TreeNode = Union[LeafNode[T], DirectoryNode[T]]


def _checked_paths(records: Sequence[Any]) -> tuple[list[str], int]:
    paths: list[str] = []
    seen: set[str] = set()
    depth = 0
    for record in records:
        path = record_path(record)
        depth = max(depth, len(split_segments(path)))
        if path in seen:
            raise DuplicatePathError(f"path '{path}' appears more than once", path)
        seen.add(path)
        paths.append(path)
    return paths, depth


def _group(
    arena: Sequence[T],
    paths: Sequence[str],
    members: deque[int],
    prefix_length: int,
) -> list[TreeNode[T]]:
    root: list[TreeNode[T]] = []
    # (indices still to place, characters already consumed, list receiving the nodes)
    stack = [(members, prefix_length, root)]
    while stack:
        members, prefix_length, nodes = stack.pop()
        while members:
            first = members[0]
            rest = paths[first][prefix_length:]
            cut = rest.find(SEPARATOR)
            if cut < 0:
                nodes.append(LeafNode(title=rest, path=paths[first], data=arena[first]))
                members.popleft()
                continue

            title = rest[:cut]
            marker = title + SEPARATOR
            matched: deque[int] = deque()
            unmatched: deque[int] = deque()
            for index in members:
                if paths[index].startswith(marker, prefix_length):
                    matched.append(index)
                else:
                    unmatched.append(index)
            members = unmatched
            directory: DirectoryNode[T] = DirectoryNode(title=title, path=paths[first][: prefix_length + cut])
            nodes.append(directory)
            stack.append((matched, prefix_length + cut + 1, directory.children))
    return root


def build_raw(records: Sequence[T], prefix_length: int = 0) -> list[TreeNode[T]]:
    """Group records by path segment, without collapsing or sorting.

    ``prefix_length`` characters are skipped on every path; they must cover
    whole segments plus the separator that follows them. Records are
    addressed by position, so neither the caller's sequence nor the records
    in it are modified.
    """
    if prefix_length < 0:
        raise ValueError("prefix_length must not be negative")
    arena = list(records)
    paths, _ = _checked_paths(arena)
    if prefix_length:
        for path in paths:
            if len(path) <= prefix_length or path[prefix_length - 1] != SEPARATOR:
                raise MalformedPathError(
                    f"path '{path}' does not continue past a {prefix_length} character prefix", path
                )
    return _group(arena, paths, deque(range(len(arena))), prefix_length)


def collation_key(title: str) -> tuple[str, str]:
    # Accent and case insensitive first, exact title breaks ties.
    decomposed = unicodedata.normalize("NFKD", title)
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    return folded, title


def sibling_key(node: TreeNode[Any]) -> tuple[bool, str, str]:
    return (isinstance(node, LeafNode), *collation_key(node.title))


def tree_depth(nodes: Sequence[TreeNode[Any]]) -> int:
    """Number of levels in the tree; fails on nodes reachable more than once."""
    depth = 0
    seen: set[int] = set()
    stack = [(node, 1) for node in nodes]
    while stack:
        node, level = stack.pop()
        if id(node) in seen:
            raise TreeInvariantError("tree node is reachable more than once", getattr(node, "path", None))
        seen.add(id(node))
        depth = max(depth, level)
        if isinstance(node, DirectoryNode):
            stack.extend((child, level + 1) for child in node.children)
        elif not isinstance(node, LeafNode):
            raise TreeInvariantError(f"unexpected tree node {type(node).__name__}")
    return depth


def _single_directory_child(node: DirectoryNode[T]) -> DirectoryNode[T] | None:
    if len(node.children) == 1 and isinstance(node.children[0], DirectoryNode):
        return node.children[0]
    return None


def _collapse(node: DirectoryNode[T], depth_limit: int) -> None:
    for _ in range(depth_limit):
        child = _single_directory_child(node)
        if child is None:
            return
        if child is node or not child.path.startswith(node.path + SEPARATOR):
            raise TreeInvariantError(f"directory '{child.path}' is not nested under '{node.path}'", node.path)
        node.title = f"{node.title}{SEPARATOR}{child.title}"
        node.path = child.path
        node.children = child.children
    if _single_directory_child(node) is not None:
        raise TreeInvariantError(f"directory '{node.path}' did not settle within {depth_limit} merges", node.path)


def _simplify(nodes: list[TreeNode[T]], depth_limit: int) -> list[TreeNode[T]]:
    stack = [(nodes, 1)]
    while stack:
        siblings, level = stack.pop()
        if siblings and level > depth_limit:
            raise TreeInvariantError(f"tree is deeper than {depth_limit} levels")
        for node in siblings:
            if isinstance(node, DirectoryNode):
                _collapse(node, depth_limit)
                stack.append((node.children, level + 1))
            elif not isinstance(node, LeafNode):
                raise TreeInvariantError(f"unexpected tree node {type(node).__name__}")
        siblings.sort(key=sibling_key)
    return nodes


def simplify(nodes: list[TreeNode[T]], depth_limit: int | None = None) -> list[TreeNode[T]]:
    """Collapse single-subdirectory chains and sort siblings, in place.

    Returns ``nodes``. ``depth_limit`` bounds both the merge loop and the
    walk; it defaults to the measured depth of the tree.
    """
    if depth_limit is None:
        depth_limit = tree_depth(nodes)
    return _simplify(nodes, depth_limit)


def build_tree(records: Sequence[T]) -> list[TreeNode[T]]:
    arena = list(records)
    paths, depth = _checked_paths(arena)
    raw = _group(arena, paths, deque(range(len(arena))), 0)
    return simplify(raw, depth_limit=depth)


def iter_nodes(nodes: Sequence[TreeNode[T]]) -> Iterator[TreeNode[T]]:
    """Depth-first walk in sibling order."""
    stack = [iter(nodes)]
    while stack:
        node = next(stack[-1], None)
        if node is None:
            stack.pop()
            continue
        yield node
        if isinstance(node, DirectoryNode):
            stack.append(iter(node.children))


def leaves(nodes: Sequence[TreeNode[T]]) -> list[LeafNode[T]]:
    return [node for node in iter_nodes(nodes) if isinstance(node, LeafNode)]
