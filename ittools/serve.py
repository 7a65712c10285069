# ittools/serve.py
"""
Launches the FastAPI web server for the ittools API.

`create_app()` builds an application around a `ToolService`, registers the
`/api` routes and loads the tool tree at startup. Running this module starts
Uvicorn.
"""
import logging
import os
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ittools import __description__, __title__, __version__
from ittools.app import ToolService
from ittools.exceptions import IttoolsError
from ittools.schemas.tool_result import ToolResult
from ittools.utils.logger import setup_logger
from ittools.web import router as api_router
from ittools.web.deps import STATUS_BY_KIND

load_dotenv()
logger = setup_logger(__name__)


def create_app(service: Optional[ToolService] = None) -> FastAPI:
    """Build the FastAPI application.

    :param service: The service to serve; a default one built from config
        when omitted.
    """
    app = FastAPI(title=__title__, description=__description__, version=__version__)
    app.state.service = service or ToolService()

    @app.exception_handler(IttoolsError)
    async def ittools_exception_handler(request: Request, exc: IttoolsError):
        """Turns any escaped taxonomy error into a structured, message-only body."""
        logger.warning(f"{exc.__class__.__name__} on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=STATUS_BY_KIND.get(exc.kind, 500),
            content=ToolResult.from_error(exc).to_dict(),
        )

    @app.on_event("startup")
    async def on_startup():
        logger.info(f"--- {__title__} {__version__} startup ---")
        registry = await app.state.service.ensure_loaded()
        logger.info(f"{len(registry)} tool(s) registered.")

    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

if __name__ == "__main__":
    host = os.getenv("ITTOOLS_HOST", "127.0.0.1")
    port = int(os.getenv("ITTOOLS_PORT", 8000))
    log_level_str = os.getenv("ITTOOLS_LOG_LEVEL", "info").lower()

    logging.getLogger().setLevel(getattr(logging, log_level_str.upper(), logging.INFO))
    logger.info(f"Server will run on http://{host}:{port}")
    uvicorn.run("ittools.serve:app", host=host, port=port, log_level=log_level_str)
