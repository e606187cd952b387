from fastapi import APIRouter, Depends, Query, Request
from typing import Annotated, Optional

from ...common.pagination import MAX_LIMIT, PageRequest, pagination_params
from ...core.database import Database, get_catalog_db
from ..auth.security import get_current_user
from . import service
from .schemas import CatalogResponse

router = APIRouter(
    prefix="/list-motos",
    tags=["Catalog"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=CatalogResponse, summary="Catalog items in stock with tax and final price")
async def get_catalog(
    request: Request,
    db: Annotated[Database, Depends(get_catalog_db)],
    page_request: Annotated[PageRequest, Depends(pagination_params(MAX_LIMIT))],
    year: Optional[str] = Query(None, description="Stock year, defaults to the current year"),
):
    return await service.list_catalog(db, year, page_request, request)
