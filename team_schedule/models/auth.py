from typing import Optional

from pydantic import BaseModel, ConfigDict

from .enums import Role


class AuthContext(BaseModel):
    """Who is asking: resolved once per request and passed down explicitly."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: Role
    team_id: Optional[str] = None
