"""Sync API endpoints."""

import json
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from offplan.database import get_db
from offplan.schemas.sync import SyncRequest, SyncResponse, SyncStatus, SyncStatusResponse
from offplan.services.stats_service import get_database_stats
from offplan.services.sync_lock import SyncCooldownLock
from offplan.services.sync_service import PropertySyncService, property_sync_service
from offplan.utils.logging import get_logger

router = APIRouter()
logger = get_logger("api.sync")


def get_sync_lock(request: Request) -> SyncCooldownLock:
    return request.app.state.sync_lock


def get_sync_service() -> PropertySyncService:
    return property_sync_service


async def _read_body(request: Request) -> dict:
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


@router.post("", response_model=SyncResponse)
async def trigger_sync(
    request: Request,
    lock: SyncCooldownLock = Depends(get_sync_lock),
    service: PropertySyncService = Depends(get_sync_service),
):
    """Run a full or incremental sync, at most one at a time."""
    if not lock.try_acquire():
        remaining = lock.remaining_seconds()
        logger.warning("sync_rate_limited", retry_after=remaining)
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={
                "success": False,
                "error": f"Sync is rate limited. Try again in {remaining} seconds.",
                "retry_after": remaining,
            },
        )

    try:
        try:
            params = SyncRequest.model_validate(await _read_body(request))
        except ValidationError as e:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={
                    "success": False,
                    "error": "Invalid sync parameters",
                    "details": json.loads(e.json()),
                },
            )

        full = params.type == "full" or params.force
        logger.info("sync_requested", full=full, batch_size=params.batch_size)
        if full:
            stats = await service.sync_all(params.to_options())
        else:
            stats = await service.sync_latest_updates()

        return SyncResponse(
            success=True,
            data=stats,
            message=f"{'Full' if full else 'Incremental'} sync completed successfully",
            timestamp=datetime.now(timezone.utc),
        )
    except Exception as e:
        logger.exception("sync_request_failed", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": "Synchronization failed",
                "details": str(e),
            },
        )
    finally:
        lock.release()


@router.get("", response_model=SyncStatusResponse)
async def sync_status(
    include_stats: bool = Query(False),
    lock: SyncCooldownLock = Depends(get_sync_lock),
    db: AsyncSession = Depends(get_db),
) -> SyncStatusResponse:
    """Report whether a sync is in flight, optionally with table counts."""
    stats = await get_database_stats(db) if include_stats else None
    return SyncStatusResponse(
        success=True,
        data=SyncStatus(
            is_running=lock.is_running(),
            last_sync_time=lock.last_started_at,
            cooldown_remaining=lock.remaining_seconds(),
            stats=stats,
        ),
    )
