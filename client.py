"""
Client-side state for the chat frontend.

Mirrors what the single-page app keeps in view state: the channel list and
selection, the user list and current user, and the channel/direct message
feeds refreshed by polling. Any object with a requests-style interface
(``get``/``post`` returning responses with ``status_code`` and ``json()``)
can be used as the HTTP session.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from access import has_channel_access
from logger import get_logger

logger = get_logger(__name__)

POLL_INTERVAL_SECONDS = 0.25
REQUEST_TIMEOUT_SECONDS = 10


class _ApiClient:
    def __init__(self, session: Any = None, base_url: str = ""):
        self.session = session if session is not None else requests.Session()
        self.base_url = base_url.rstrip("/")

    def _request(self, method: str, path: str, headers: Optional[Dict[str, str]] = None, **kwargs) -> Optional[Any]:
        """Send a request and return the decoded body, or None on any failure."""
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, headers=headers, timeout=REQUEST_TIMEOUT_SECONDS, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            return None
        if response.status_code >= 400:
            logger.error(f"{method} {path} failed: HTTP {response.status_code}")
            return None
        return response.json()


class AuthStore(_ApiClient):
    """Holds the bearer token for the session and resolves the current user."""

    def __init__(self, session: Any = None, base_url: str = ""):
        super().__init__(session, base_url)
        self._token: Optional[str] = None

    def store_token(self, token: str) -> None:
        self._token = token

    def get_token(self) -> Optional[str]:
        return self._token

    def clear_token(self) -> None:
        self._token = None

    def auth_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def login(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        data = self._request("POST", "/api/users/login", json={"email": email, "password": password})
        if not data:
            return None
        self.store_token(data["token"])
        logger.info(f"Logged in as {email}")
        return data["user"]

    def register(self, user_name: str, email: str, password: str) -> Optional[Dict[str, Any]]:
        data = self._request(
            "POST",
            "/api/users/add",
            json={"userName": user_name, "email": email, "password": password, "isAdmin": False},
        )
        return data["user"] if data else None

    def logout(self) -> None:
        self.clear_token()

    def current_user(self) -> Optional[Dict[str, Any]]:
        if not self._token:
            return None
        data = self._request("GET", "/api/users/profile", headers=self.auth_headers())
        return data["profile"] if data else None


class ChannelHook(_ApiClient):
    def __init__(self, auth: AuthStore):
        super().__init__(auth.session, auth.base_url)
        self.auth = auth
        self.channels: List[Dict[str, Any]] = []
        self.selected_channel: Optional[Dict[str, Any]] = None
        self.has_access = False

    def fetch_channels(self) -> List[Dict[str, Any]]:
        data = self._request("GET", "/api/channels")
        if data is not None:
            self.channels = data
        return self.channels

    def check_access(self, channel: Dict[str, Any]) -> bool:
        if not channel.get("isLocked"):
            return True
        if not self.auth.get_token():
            logger.info("No auth token found")
            return False
        return has_channel_access(channel, self.auth.current_user())

    def select(self, channel: Dict[str, Any]) -> bool:
        """Select a channel if the current user may see it; returns the access decision."""
        self.has_access = self.check_access(channel)
        if self.has_access:
            self.selected_channel = channel
        return self.has_access


class UserHook(_ApiClient):
    def __init__(self, auth: AuthStore):
        super().__init__(auth.session, auth.base_url)
        self.auth = auth
        self.users: List[Dict[str, Any]] = []
        self.current_user: Optional[Dict[str, Any]] = None
        self.selected_dm_user: Optional[Dict[str, Any]] = None

    def fetch_users(self) -> List[Dict[str, Any]]:
        data = self._request("GET", "/api/users")
        if data is not None:
            self.users = data
        return self.users

    def load_current_user(self) -> Optional[Dict[str, Any]]:
        self.current_user = self.auth.current_user()
        return self.current_user

    def select_dm_user(self, user: Optional[Dict[str, Any]]) -> None:
        if user:
            self.selected_dm_user = user


class MessageHook(_ApiClient):
    def __init__(self, auth: AuthStore, channel_hook: ChannelHook, user_hook: UserHook):
        super().__init__(auth.session, auth.base_url)
        self.auth = auth
        self.channel_hook = channel_hook
        self.user_hook = user_hook
        self.channel_messages: List[Dict[str, Any]] = []
        self.direct_messages: List[Dict[str, Any]] = []

    def fetch_channel_messages(self, channel: Dict[str, Any]) -> List[Dict[str, Any]]:
        if not self.channel_hook.has_access:
            self.channel_messages = []
            return self.channel_messages
        data = self._request(
            "GET", f"/api/messages/channels/{channel['id']}/messages", headers=self.auth.auth_headers()
        )
        if data is not None:
            self.channel_messages = data
        return self.channel_messages

    def fetch_direct_messages(self) -> List[Dict[str, Any]]:
        data = self._request("GET", "/api/messages/direct/all", headers=self.auth.auth_headers())
        if data is not None:
            self.direct_messages = data
        return self.direct_messages

    def send(self, content: str, target_id: str, is_dm: bool) -> bool:
        current = self.auth.current_user()
        stamp = datetime.now(timezone.utc).isoformat()
        body = {
            "content": content,
            "userId": current["id"] if current else None,
            "recipientId": target_id if is_dm else None,
            "channelId": None if is_dm else target_id,
            "taggedUsers": [],
            "createdAt": stamp,
            "updatedAt": stamp,
        }
        if self._request("POST", "/api/messages", headers=self.auth.auth_headers(), json=body) is None:
            logger.error("Failed to send message")
            return False

        if is_dm:
            self.fetch_direct_messages()
        elif self.channel_hook.selected_channel:
            self.fetch_channel_messages(self.channel_hook.selected_channel)
        return True

    def poll_once(self) -> None:
        channel = self.channel_hook.selected_channel
        if channel and self.channel_hook.has_access:
            self.fetch_channel_messages(channel)
        elif self.user_hook.selected_dm_user:
            self.fetch_direct_messages()


class MessagePoller:
    """Calls MessageHook.poll_once on a background thread at a fixed interval."""

    def __init__(self, hook: MessageHook, interval: float = POLL_INTERVAL_SECONDS):
        self.hook = hook
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="message-poller", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join()
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.hook.poll_once()


def visible_messages(
    channel_messages: List[Dict[str, Any]],
    direct_messages: List[Dict[str, Any]],
    selected_channel: Optional[Dict[str, Any]],
    selected_dm_user: Optional[Dict[str, Any]],
    current_user: Optional[Dict[str, Any]],
) -> Optional[List[Dict[str, Any]]]:
    """The feed to display: the channel's messages, or the conversation with the selected user."""
    if not selected_channel and not selected_dm_user:
        return None
    if selected_channel:
        return channel_messages

    other = selected_dm_user.get("id")
    me = current_user.get("id") if current_user else None
    return [
        m for m in direct_messages
        if (m.get("userId") == other and m.get("recipientId") == me)
        or (m.get("userId") == me and m.get("recipientId") == other)
    ]


class ChatClient:
    """Bundles the hooks the way the frontend's root view wires them together."""

    def __init__(self, base_url: str = "", session: Any = None):
        self.auth = AuthStore(session, base_url)
        self.channels = ChannelHook(self.auth)
        self.users = UserHook(self.auth)
        self.messages = MessageHook(self.auth, self.channels, self.users)
        self.poller = MessagePoller(self.messages)

    def mount(self) -> None:
        """Initial load: channels, users, the current user and the direct message set."""
        self.channels.fetch_channels()
        self.users.fetch_users()
        if self.users.load_current_user():
            self.messages.fetch_direct_messages()

    def feed(self) -> Optional[List[Dict[str, Any]]]:
        return visible_messages(
            self.messages.channel_messages,
            self.messages.direct_messages,
            self.channels.selected_channel,
            self.users.selected_dm_user,
            self.users.current_user,
        )
