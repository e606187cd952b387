from fastapi import APIRouter, Depends, Query, Request
from typing import Annotated, Optional

from ...common.pagination import PageRequest, pagination_params
from ...core.database import Database, get_sales_db
from ..auth.security import get_current_user
from . import service
from .schemas import WarrantyResponse

router = APIRouter(
    prefix="/garanty-ext-list",
    tags=["Extended warranty"],
    dependencies=[Depends(get_current_user)],
)


@router.get(
    "",
    response_model=WarrantyResponse,
    summary="Extended-warranty sales for one year",
    responses={400: {"description": "Missing or non-numeric year"}},
)
async def get_warranty_sales(
    request: Request,
    db: Annotated[Database, Depends(get_sales_db)],
    page_request: Annotated[PageRequest, Depends(pagination_params())],
    year: Optional[str] = Query(None, description="Sales year, required, e.g. 2025"),
):
    return await service.list_warranty_sales(db, year, page_request, request)
