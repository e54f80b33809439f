"""Request dependencies: acting user resolution and moderator gate.

Session verification happens upstream; the gateway forwards the verified
identity in the ``X-User-Id`` and ``X-Telegram-Username`` headers.
"""

from typing import Optional

from fastapi import Depends, Header

from miniapp.models.user import CurrentUser
from miniapp.services.moderation_service import is_moderator
from miniapp.utils.errors import AuthenticationError, ForbiddenError
from miniapp.utils.logging import get_logger

logger = get_logger(__name__)


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_telegram_username: Optional[str] = Header(default=None),
) -> CurrentUser:
    """Resolve the acting user or fail with UNAUTHORIZED."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise AuthenticationError("Missing acting user")
    return CurrentUser(user_id=user_id, telegram_username=(x_telegram_username or "").strip() or None)


def require_moderator(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Let only configured moderators through (FORBIDDEN otherwise)."""
    if not is_moderator(current_user.telegram_username):
        logger.warning("Moderator access denied", user_id=current_user.user_id)
        raise ForbiddenError("Moderator access required")
    return current_user
