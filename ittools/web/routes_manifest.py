"""
API route exposing the manifest views (info, tools, categories).
"""

from fastapi import APIRouter, Depends

from ittools.app import ToolService
from ittools.utils.logger import setup_logger
from ittools.web.deps import get_service

router = APIRouter()
logger = setup_logger(__name__)


@router.get("/manifest/{view}", tags=["Manifest"])
async def get_manifest(view: str, service: ToolService = Depends(get_service)) -> dict:
    """Recomputes and returns one manifest view.

    :param view: "info", "tools" or "categories". Anything else is rejected
        with a 400 by the application's error handler.
    :return: The view serialized with camelCase keys.
    :rtype: dict
    """
    logger.info("Manifest view '%s' requested.", view)
    result = await service.manifest_view(view)
    return result.to_dict()
