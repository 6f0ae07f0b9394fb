# votetrail/context.py
"""
Caller context.

Authentication happens upstream; the core only receives the resulting user
id and uses it for ownership checks.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import NotOwnerError


@dataclass(frozen=True)
class UserContext:
    """An authenticated user as reported by the auth provider."""
    user_id: str
    email: Optional[str] = None


def require_owner(parent: Dict[str, Any], user: UserContext) -> None:
    """Raise NotOwnerError unless user owns the election or event row."""
    if parent.get("owner_id") != user.user_id:
        raise NotOwnerError(str(parent.get("id")), user.user_id)
