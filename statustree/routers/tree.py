from typing import Annotated

from fastapi import APIRouter, Depends, Query

from statustree.core.auth import require_api_key
from statustree.core.services.tree_service import build_record_tree, build_status_tree
from statustree.models import (
    ErrorResponse,
    StatusPayload,
    StatusTreeResponse,
    TreeRequest,
    TreeResponse,
)

router = APIRouter(
    tags=["tree"],
    dependencies=[Depends(require_api_key)],
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

BasePathQuery = Annotated[
    str | None,
    Query(description="Vault folder holding the repository; defaults to STATUSTREE_BASE_PATH"),
]


@router.post("/tree", response_model=TreeResponse, responses=ERROR_RESPONSES)
def record_tree(payload: TreeRequest, base_path: BasePathQuery = None) -> TreeResponse:
    return build_record_tree(payload, base_path=base_path)


@router.post("/status/tree", response_model=StatusTreeResponse, responses=ERROR_RESPONSES)
def status_tree(
    payload: StatusPayload,
    base_path: BasePathQuery = None,
    relative_to_vault: Annotated[
        bool, Query(description="Incoming paths include the base path and are mapped back first")
    ] = False,
) -> StatusTreeResponse:
    return build_status_tree(payload, base_path=base_path, relative_to_vault=relative_to_vault)
