"""
API routes to list registered tools and invoke them.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from ittools.app import ToolService
from ittools.utils.logger import setup_logger
from ittools.web.deps import STATUS_BY_KIND, get_client_id, get_service

router = APIRouter()
logger = setup_logger(__name__)


@router.get("/tools", tags=["Tools"])
async def list_tools(service: ToolService = Depends(get_service)) -> Dict[str, Any]:
    """Returns every registered tool with its category, description and input schema."""
    tools = await service.list_tools()
    if not tools:
        logger.warning("Tool listing requested, but registry is empty.")
    return tools


@router.post("/tools/{tool_id}", tags=["Tools"])
async def call_tool(
    tool_id: str,
    arguments: Optional[Dict[str, Any]] = Body(default=None),
    service: ToolService = Depends(get_service),
    client_id: str = Depends(get_client_id),
) -> JSONResponse:
    """Invokes a tool through the secure handler.

    The response body is always a `ToolResult`; the status code reflects its
    error kind (429 rate limited, 400 invalid input, 404 unknown tool,
    500 tool failure).
    """
    result = await service.call(tool_id, arguments or {}, identifier=client_id)
    status = 200 if result.success else STATUS_BY_KIND.get(result.error_kind, 500)
    headers = {}
    if result.meta and "retry_after_ms" in result.meta:
        headers["Retry-After"] = str(max(1, -(-int(result.meta["retry_after_ms"]) // 1000)))
    return JSONResponse(status_code=status, content=result.to_dict(), headers=headers)
