"""Connection endpoints - send, accept, decline and list peer connections."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.api.deps import get_current_user, get_notification_service
from peertutor.db.database import get_db
from peertutor.models.user import User
from peertutor.schemas.connection import (
    ConnectionOut,
    ConnectionRequestIn,
    ConnectionStatus,
    PendingRequests,
)
from peertutor.services import triggers
from peertutor.services.connection_service import ConnectionService
from peertutor.services.notification_service import NotificationService

router = APIRouter()


@router.post("/", response_model=ConnectionOut, status_code=201)
async def send_request(
    req: ConnectionRequestIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
):
    connection = await ConnectionService.send_request(db, user.id, req.to_user_id)
    await triggers.on_connection_requested(db, notifier, connection)
    await notifier.commit_and_publish(db)
    return connection


@router.get("/", response_model=list[ConnectionOut])
async def list_connections(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await ConnectionService.accepted_connections_for(db, user.id)


@router.get("/pending", response_model=PendingRequests)
async def list_pending(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    incoming, outgoing = await ConnectionService.pending_requests_for(db, user.id)
    return PendingRequests(
        incoming=[ConnectionOut.model_validate(c) for c in incoming],
        outgoing=[ConnectionOut.model_validate(c) for c in outgoing],
    )


@router.get("/with/{other_id}", response_model=ConnectionStatus)
async def connection_status(
    other_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    request = await ConnectionService.get_request_between(db, user.id, other_id)
    return ConnectionStatus(
        connected=request is not None and request.status == "accepted",
        request=ConnectionOut.model_validate(request) if request else None,
    )


@router.post("/{request_id}/accept", response_model=ConnectionOut)
async def accept_request(
    request_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
):
    connection = await ConnectionService.accept_request(db, request_id, actor_id=user.id)
    await triggers.on_connection_accepted(db, notifier, connection)
    await notifier.commit_and_publish(db)
    return connection


@router.post("/{request_id}/decline", status_code=204)
async def decline_request(
    request_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    await ConnectionService.decline_request(db, request_id, actor_id=user.id)


@router.delete("/{request_id}", status_code=204)
async def remove_connection(
    request_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    await ConnectionService.remove_connection(db, request_id, user.id)
