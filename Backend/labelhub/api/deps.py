from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from labelhub.core.exceptions import AuthorizationError, NotFoundError, UnauthorizedError
from labelhub.schemas.user import Actor
from labelhub.services.database import get_db
from labelhub.services.entity_store import EntityStore


async def get_store(db: AsyncSession = Depends(get_db)) -> EntityStore:
    return EntityStore(db)


async def get_current_actor(
    x_user_id: Optional[str] = Header(default=None),
    store: EntityStore = Depends(get_store),
) -> Actor:
    """
    Resolve the caller from the X-User-Id header.

    Authentication happens upstream of this service; here we only load the
    identity and refuse blocked accounts.
    """
    if not x_user_id:
        raise UnauthorizedError()
    try:
        user = await store.get_user(x_user_id)
    except NotFoundError:
        raise UnauthorizedError()
    if user.is_blocked:
        raise AuthorizationError(f"Account is blocked: {user.block_reason or 'label suspended'}")
    return Actor.from_user(user)
