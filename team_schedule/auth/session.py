from typing import Any, Optional

from loguru import logger
from supabase import AsyncClient

from team_schedule.models.auth import AuthContext
from team_schedule.models.enums import Role

PROFILES_TABLE = "user_profiles"


class UnknownRoleError(Exception):
    """A profile carries a role outside admin / coach / player."""

    pass


class AuthorizationError(Exception):
    """The caller's role may not perform the requested action."""

    pass


def parse_role(value: Any) -> Role:
    """Maps a profile's ``role`` column onto Role, ignoring case and padding."""
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value).strip().lower())
    except ValueError:
        raise UnknownRoleError(f"Unknown role: {value!r}") from None


def can_manage_schedules(role: Role) -> bool:
    """Coaches and admins create and edit schedules; players only read them."""
    if role == Role.ADMIN:
        return True
    if role == Role.COACH:
        return True
    if role == Role.PLAYER:
        return False
    raise UnknownRoleError(f"Unhandled role: {role!r}")


def require_role(ctx: AuthContext, *allowed: Role) -> AuthContext:
    if ctx.role not in allowed:
        names = ", ".join(role.value for role in allowed)
        raise AuthorizationError(
            f"User {ctx.user_id} has role {ctx.role.value}; requires one of: {names}"
        )
    return ctx


async def get_auth_context(client: AsyncClient) -> Optional[AuthContext]:
    """Builds the request's AuthContext from the Supabase session and profile row.

    Returns None when nobody is signed in or the user has no profile.
    """
    response = await client.auth.get_user()
    user = response.user if response else None
    if not user:
        logger.warning("No authenticated Supabase user in the current session.")
        return None

    profile_response = (
        await client.table(PROFILES_TABLE)
        .select("*")
        .eq("user_id", user.id)
        .limit(1)
        .execute()
    )
    if not profile_response.data:
        logger.warning(f"No profile found for user {user.id}.")
        return None

    profile = profile_response.data[0]
    ctx = AuthContext(
        user_id=str(user.id),
        role=parse_role(profile.get("role")),
        team_id=str(profile["team_id"]) if profile.get("team_id") else None,
    )
    logger.debug(f"Resolved auth context: user={ctx.user_id} role={ctx.role.value}")
    return ctx
