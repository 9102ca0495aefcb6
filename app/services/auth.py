"""Authentication dependencies and acting identities."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.member import AccessToken, Member
from app.services.errors import PermissionDenied, Unauthenticated
from app.services.security import lookup_hash, verify_token

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True, slots=True)
class Actor:
    """Identity performing a ledger operation.

    Attributes
    ----------
    id : str
        Stable identity stored as the account owner id.
    display_name : str | None
        Name shown as the account owner.
    email : str | None
        Contact email recorded in history.
    is_admin : bool
        Whether admin overrides apply.
    """

    id: str
    display_name: str | None = None
    email: str | None = None
    is_admin: bool = False

    @property
    def label(self) -> str:
        """Owner label: display name, then email, then a placeholder."""
        return self.display_name or self.email or "User"


def actor_for_member(member: Member) -> Actor:
    """Build the acting identity of an authenticated member.

    Parameters
    ----------
    member : Member
        Authenticated member row.

    Returns
    -------
    Actor
        Identity keyed by the member id.
    """
    return Actor(
        id=str(member.id),
        display_name=member.name,
        email=member.email,
        is_admin=member.is_admin,
    )


async def require_member(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> Member:
    """Authenticate a member token.

    Parameters
    ----------
    credentials : HTTPAuthorizationCredentials | None
        Parsed bearer token.
    session : AsyncSession
        Active database session.

    Returns
    -------
    Member
        Authenticated member row.
    """
    if credentials is None:
        raise Unauthenticated()
    member = await member_for_token(session, credentials.credentials)
    if member is None:
        raise Unauthenticated("Invalid token")
    return member


async def require_admin(member: Member = Depends(require_member)) -> Member:
    """Authenticate a member token and require the admin role.

    Parameters
    ----------
    member : Member
        Authenticated member row.

    Returns
    -------
    Member
        Authenticated admin member.
    """
    if not member.is_admin:
        raise PermissionDenied()
    return member


async def member_for_token(session: AsyncSession, raw_token: str) -> Member | None:
    """Match a raw token against stored hashes.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    raw_token : str
        Raw bearer token.

    Returns
    -------
    Member | None
        Owning member if the token is valid and not revoked.
    """
    result = await session.execute(
        select(AccessToken).where(
            AccessToken.token_lookup == lookup_hash(raw_token),
            AccessToken.revoked_at.is_(None),
        )
    )
    for row in result.scalars().unique().all():
        if verify_token(raw_token, row.token_hash):
            return row.member
    return None


async def bootstrap_allowed(session: AsyncSession) -> bool:
    """Report whether bootstrap can still run.

    Parameters
    ----------
    session : AsyncSession
        Active database session.

    Returns
    -------
    bool
        ``True`` while no member exists yet.
    """
    result = await session.execute(select(func.count(Member.id)))
    return result.scalar_one() == 0
