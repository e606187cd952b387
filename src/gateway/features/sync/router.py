"""API routes for product synchronization between the warehouse and the store."""
import logging
from fastapi import APIRouter, Depends, Query
from typing import Annotated

from ...core.database import Database, get_pos_db, get_store_db
from ..auth.schemas import User
from ..auth.security import get_current_user, require_roles
from . import service
from .history import SyncHistory, get_sync_history
from .schemas import ManualSyncRequest, ManualSyncResponse, SyncHistoryResponse, SyncStatusResponse
from .store import StoreCatalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["Sync"])

sync_operator = require_roles("admin", "api")


@router.post("/manual", response_model=ManualSyncResponse, summary="Reconcile a batch, optionally applying it")
async def manual_sync(
    body: ManualSyncRequest,
    store_db: Annotated[Database, Depends(get_store_db)],
    history: Annotated[SyncHistory, Depends(get_sync_history)],
    current_user: Annotated[User, Depends(sync_operator)],
):
    run, report, updated = await service.manual_sync(
        body.product_codes,
        body.apply,
        StoreCatalog(store_db),
        history,
        requested_by=current_user.username,
    )
    message = f"{len(updated)} products updated" if body.apply else "Dry run, nothing written"
    return ManualSyncResponse(message=message, run=run, report=report, updated=updated)


@router.get("/status", response_model=SyncStatusResponse, summary="Compare the warehouse stock with the store")
async def sync_status(
    pos_db: Annotated[Database, Depends(get_pos_db)],
    store_db: Annotated[Database, Depends(get_store_db)],
    history: Annotated[SyncHistory, Depends(get_sync_history)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    run, report = await service.sync_status(
        pos_db, StoreCatalog(store_db), history, requested_by=current_user.username
    )
    return SyncStatusResponse(
        run=run,
        counts={
            "total": report.total,
            "inSync": report.in_sync,
            "outOfSync": report.out_of_sync,
            "absentInSecondary": report.absent_in_secondary,
            "errors": report.error_count,
        },
        sync_payload=report.sync_payload,
    )


@router.get("/history", response_model=SyncHistoryResponse, summary="Recent sync runs of this process")
async def sync_history(
    history: Annotated[SyncHistory, Depends(get_sync_history)],
    _: Annotated[User, Depends(get_current_user)],
    limit: int = Query(20, ge=1, le=100),
):
    runs = history.recent(limit)
    return SyncHistoryResponse(count=len(runs), data=runs)
