"""OpenAPI documentation routes, gated by ``X-API-Key`` in production."""
import logging
from typing import Annotated, Optional

from fastapi import Depends, FastAPI, Security
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader

from . import config
from .errors import AuthenticationError

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def valid_api_keys() -> dict[str, str]:
    keys = {
        config.API_KEY: "admin",
        config.SWAGGER_API_KEY: "swagger",
        config.EXTERNAL_API_KEY: "external-service",
    }
    return {key: owner for key, owner in keys.items() if key}


def docs_protected() -> bool:
    return config.ENVIRONMENT == "production" and not config.DOCS_PUBLIC


async def verify_docs_access(api_key: Annotated[Optional[str], Security(api_key_header)]) -> None:
    if not docs_protected():
        return
    if not api_key:
        raise AuthenticationError("API Key required", details={"header": "X-API-Key"})
    owner = valid_api_keys().get(api_key)
    if owner is None:
        raise AuthenticationError("Invalid API Key")
    logger.info(f"Documentation accessed with the {owner} key")


def register_docs(app: FastAPI, prefix: str = "/api") -> None:
    openapi_url = f"{prefix}/openapi.json"

    @app.get(openapi_url, include_in_schema=False, dependencies=[Depends(verify_docs_access)])
    async def openapi_schema():
        return JSONResponse(app.openapi())

    @app.get(f"{prefix}/docs", include_in_schema=False, dependencies=[Depends(verify_docs_access)])
    async def swagger_ui():
        return get_swagger_ui_html(openapi_url=openapi_url, title=f"{app.title} - Docs")
