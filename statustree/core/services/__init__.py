from statustree.core.services.tree_service import (
    build_record_tree,
    build_status_tree,
    map_tree_error,
    resolve_base_path,
    tree_stats,
)

__all__ = [
    "build_record_tree",
    "build_status_tree",
    "map_tree_error",
    "resolve_base_path",
    "tree_stats",
]
