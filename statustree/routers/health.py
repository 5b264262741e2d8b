from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from statustree.core.config import config_problems
from statustree.models import HealthResponse, ReadyResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(ok=True)


@router.get(
    "/ready",
    response_model=ReadyResponse,
    responses={503: {"model": ReadyResponse, "description": "Invalid statustree configuration"}},
)
async def ready():
    problems = config_problems()
    if problems:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=ReadyResponse(ready=False, reason="; ".join(problems)).model_dump(),
        )
    return ReadyResponse(ready=True)
