"""
Channel access policy.

Used by the server before returning or accepting channel messages, and by
the client hooks before fetching them.
"""

from typing import Any, Dict, Optional


def _user_id(user: Dict[str, Any]) -> Optional[str]:
    value = user.get("id", user.get("_id"))
    return str(value) if value is not None else None


def has_channel_access(channel: Dict[str, Any], user: Optional[Dict[str, Any]]) -> bool:
    """Decide whether `user` may read and write `channel`.

    Unlocked channels are open to everyone, anonymous callers included.
    Locked channels admit administrators and listed members; membership is
    string equality on the stringified user id.
    """
    if not channel.get("isLocked"):
        return True
    if not user:
        return False
    if user.get("isAdmin"):
        return True
    user_id = _user_id(user)
    members = [str(m) for m in channel.get("members") or []]
    return user_id is not None and user_id in members
