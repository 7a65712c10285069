"""
Aggregates the `routes_*` routers into a single `APIRouter` so the FastAPI
application in `serve.py` can mount them under `/api` with one line.
"""

from fastapi import APIRouter

from ittools.web.routes_manifest import router as manifest_router
from ittools.web.routes_tools import router as tools_router

router = APIRouter()

router.include_router(manifest_router)
router.include_router(tools_router)
