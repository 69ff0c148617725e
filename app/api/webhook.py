"""Webhook API for receiving Alertmanager notifications."""

import logging

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import JSONResponse

from app.deps import IngestionService
from app.exceptions import CollaboratorWriteError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhook"])


@router.post("/alertmanager")
async def receive_alertmanager(request: Request, service: IngestionService) -> JSONResponse:
    """Receive an Alertmanager webhook and synchronize the group's document.

    Write failures answer 503 so Alertmanager redelivers; replays are safe.
    """
    try:
        payload = await request.json()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid JSON payload: {e}",
        )

    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Payload must be a JSON object",
        )

    logger.info(
        f"Received webhook for group {payload.get('groupKey')!r} "
        f"with {len(payload.get('alerts') or [])} alert(s)"
    )

    try:
        result = await service.ingest_payload(payload)
    except CollaboratorWriteError as e:
        logger.error(f"Synchronization failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "ok",
            "document_id": result.document_id,
            "state": result.state.value,
            "alerts": result.alerts,
            "errors": result.errors,
        },
    )
