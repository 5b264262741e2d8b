from fastapi import APIRouter

from statustree.routers.health import router as health_router
from statustree.routers.tree import router as tree_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health_router)
api_router.include_router(tree_router)
