"""API v1 router with core endpoints.

This module provides version 1 of the API with the engine endpoints and
system information.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, status

from wheelbook.api.v1 import batch, positions, trades, usage, wheels
from wheelbook.config import settings
from wheelbook.database.session import check_database_connection
from wheelbook.models.common import InfoResponse

logger = logging.getLogger(__name__)

# Create v1 router
router = APIRouter(
    prefix="/api/v1",
    tags=["v1"],
)

# Batch routes go first so /trades/batch/* is not captured by /trades/{trade_id}/*
router.include_router(batch.router)
router.include_router(trades.router)
router.include_router(positions.router)
router.include_router(usage.router)
router.include_router(wheels.router)


@router.get(
    "/info",
    response_model=InfoResponse,
    status_code=status.HTTP_200_OK,
    summary="Get system information",
    description="Returns system information including version and database status",
)
async def get_info() -> InfoResponse:
    """Get system information endpoint.

    Returns:
        System information including database connection status

    Example:
        >>> GET /api/v1/info
        >>> {
        >>>     "app_name": "Wheelbook API",
        >>>     "version": "1.0.0",
        >>>     "status": "running",
        >>>     "database_connected": true,
        >>>     "free_trade_limit": 20,
        >>>     "timestamp": "2026-01-31T10:00:00"
        >>> }
    """
    db_connected = check_database_connection()

    return InfoResponse(
        app_name=settings.app_name,
        version=settings.version,
        status="running",
        database_connected=db_connected,
        free_trade_limit=settings.free_trade_limit,
        timestamp=datetime.utcnow(),
    )
