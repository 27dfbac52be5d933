"""Caller identity supplied by the upstream gateway through request headers."""
import logging
from dataclasses import dataclass, field

from fastapi import Depends, HTTPException, Request, status

from pokefolio.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class CurrentUser:
    """Authenticated caller as forwarded by the gateway."""
    owner_id: str
    roles: set[str] = field(default_factory=set)

    @property
    def is_admin(self) -> bool:
        return settings.admin_role.lower() in self.roles


async def get_current_user(request: Request) -> CurrentUser:
    """
    Read the caller from the identity headers.

    The owner ID header is mandatory; roles are a comma-separated list.
    """
    owner_id = (request.headers.get(settings.user_id_header) or "").strip()
    if not owner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    raw_roles = request.headers.get(settings.user_roles_header) or ""
    roles = {role.strip().lower() for role in raw_roles.split(",") if role.strip()}
    return CurrentUser(owner_id=owner_id, roles=roles)


async def get_current_owner_id(user: CurrentUser = Depends(get_current_user)) -> str:
    """Owner identity scoping every portfolio operation."""
    return user.owner_id


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        logger.warning(f"Admin access denied for {user.owner_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator role required"
        )
    return user
