"""Account and reservation routes."""

from uuid import UUID

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_session
from app.models.account import Account
from app.models.member import Member
from app.routers.dependencies import commit_session, current_actor
from app.schemas.accounts import (
    AccountCreateRequest,
    AccountExportItem,
    AccountImportItem,
    AccountImportResponse,
    AccountResponse,
    AccountUpdateRequest,
    CredentialsResponse,
    ReservationResponse,
)
from app.schemas.common import MessageResponse
from app.schemas.history import HistoryEntryResponse
from app.services.accounts import (
    create_account,
    delete_account,
    get_account_or_404,
    import_accounts,
    list_accounts,
    reveal_password,
    update_account,
)
from app.services.auth import Actor, member_for_token, require_admin
from app.services.feed import Snapshot, account_feed, snapshot_of
from app.services.history import recent_for_account
from app.services.reservations import (
    held_account,
    release_account,
    reserve_account,
    reserve_any_free,
)
from app.services.vault import open_password

router = APIRouter(prefix="/v1/accounts", tags=["accounts"])


def _reservation(account: Account, changed: bool) -> ReservationResponse:
    return ReservationResponse(
        account=AccountResponse.model_validate(account),
        password=open_password(account),
        changed=changed,
    )


@router.get("", response_model=list[AccountResponse])
async def list_all_accounts(
    _: Actor = Depends(current_actor),
    session: AsyncSession = Depends(get_session),
) -> list[AccountResponse]:
    """List accounts ordered by username."""
    return [AccountResponse.model_validate(row) for row in await list_accounts(session)]


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def register_account(
    payload: AccountCreateRequest,
    _: Member = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> AccountResponse:
    """Register a shared account."""
    account = await create_account(
        session,
        username=payload.username,
        email=payload.email,
        password=payload.password,
    )
    await commit_session(session)
    return AccountResponse.model_validate(account)


@router.get("/mine", response_model=AccountResponse | None)
async def my_reservation(
    actor: Actor = Depends(current_actor),
    session: AsyncSession = Depends(get_session),
) -> AccountResponse | None:
    """Return the caller's current reservation, if any."""
    account = await held_account(session, actor)
    return AccountResponse.model_validate(account) if account is not None else None


@router.post("/quick-reserve", response_model=ReservationResponse)
async def quick_reserve(
    actor: Actor = Depends(current_actor),
    session: AsyncSession = Depends(get_session),
) -> ReservationResponse:
    """Reserve any free account."""
    account = await reserve_any_free(session, actor)
    await commit_session(session)
    return _reservation(account, True)


@router.post("/import", response_model=AccountImportResponse)
async def import_account_file(
    payload: list[AccountImportItem],
    _: Member = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> AccountImportResponse:
    """Create accounts in bulk, skipping existing usernames."""
    result = await import_accounts(session, [item.model_dump() for item in payload])
    await commit_session(session)
    return AccountImportResponse(
        created=[AccountResponse.model_validate(row) for row in result.created],
        skipped=result.skipped,
    )


@router.get("/export", response_model=list[AccountExportItem])
async def export_accounts(
    _: Member = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> list[AccountExportItem]:
    """Export accounts with their passwords."""
    return [
        AccountExportItem(
            username=row.username,
            email=row.email,
            password=open_password(row) or "",
            status=row.status,
            owner=row.owner,
            owner_id=row.owner_id,
            last_used_at=row.last_used_at,
            last_returned_at=row.last_returned_at,
        )
        for row in await list_accounts(session)
    ]


async def _forward_snapshots(
    websocket: WebSocket, snapshots: MemoryObjectReceiveStream[Snapshot]
) -> None:
    """Send every published snapshot until the client goes away."""
    try:
        async for snapshot in snapshots:
            await websocket.send_json(snapshot)
    except WebSocketDisconnect:
        return


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    """Drain client frames until the client disconnects."""
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


@router.websocket("/live")
async def live_accounts(
    websocket: WebSocket,
    token: str = Query(...),
    session: AsyncSession = Depends(get_session),
) -> None:
    """Push the account list on connect and after every change."""
    member = await member_for_token(session, token)
    if member is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await websocket.accept()
    async with account_feed.subscribe() as snapshots:
        await websocket.send_json(snapshot_of(await list_accounts(session)))
        await session.close()
        async with anyio.create_task_group() as task_group:
            task_group.start_soon(_forward_snapshots, websocket, snapshots)
            await _wait_for_disconnect(websocket)
            task_group.cancel_scope.cancel()


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: UUID,
    _: Actor = Depends(current_actor),
    session: AsyncSession = Depends(get_session),
) -> AccountResponse:
    """Return one account."""
    return AccountResponse.model_validate(await get_account_or_404(session, account_id))


@router.patch("/{account_id}", response_model=AccountResponse)
async def edit_account(
    account_id: UUID,
    payload: AccountUpdateRequest,
    _: Member = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> AccountResponse:
    """Apply a partial admin edit."""
    account = await update_account(
        session, account_id, payload.model_dump(exclude_unset=True)
    )
    await commit_session(session)
    return AccountResponse.model_validate(account)


@router.delete("/{account_id}", response_model=MessageResponse)
async def remove_account(
    account_id: UUID,
    _: Member = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Delete an account; its history is kept."""
    await delete_account(session, account_id)
    await commit_session(session)
    return MessageResponse(message="Account deleted")


@router.post("/{account_id}/reserve", response_model=ReservationResponse)
async def reserve(
    account_id: UUID,
    actor: Actor = Depends(current_actor),
    session: AsyncSession = Depends(get_session),
) -> ReservationResponse:
    """Reserve an account for the caller."""
    account, changed = await reserve_account(session, account_id, actor)
    await commit_session(session)
    return _reservation(account, changed)


@router.post("/{account_id}/release", response_model=AccountResponse)
async def release(
    account_id: UUID,
    actor: Actor = Depends(current_actor),
    session: AsyncSession = Depends(get_session),
) -> AccountResponse:
    """Release an account."""
    account = await release_account(session, account_id, actor)
    await commit_session(session)
    return AccountResponse.model_validate(account)


@router.get("/{account_id}/credentials", response_model=CredentialsResponse)
async def account_credentials(
    account_id: UUID,
    actor: Actor = Depends(current_actor),
    session: AsyncSession = Depends(get_session),
) -> CredentialsResponse:
    """Return login details to the holder or an admin."""
    account = await get_account_or_404(session, account_id)
    return CredentialsResponse(
        username=account.username,
        email=account.email,
        password=reveal_password(account, actor),
    )


@router.get("/{account_id}/history", response_model=list[HistoryEntryResponse])
async def account_history(
    account_id: UUID,
    _: Actor = Depends(current_actor),
    session: AsyncSession = Depends(get_session),
    limit: int | None = Query(default=None, ge=1, le=500),
) -> list[HistoryEntryResponse]:
    """Return recent events of one account, newest first."""
    entries = await recent_for_account(
        session, account_id, limit or get_settings().history_default_limit
    )
    return [HistoryEntryResponse.model_validate(row) for row in entries]
