"""
Recent auth activity, fed by the auth client's session-change notifications.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Optional

from portfolio.auth import AuthClient, AuthSession, Subscription
from shared.types import AuthEvent

logger = logging.getLogger(__name__)

MAX_ENTRIES = 50

DESCRIPTIONS = {
    AuthEvent.SIGNED_IN: "{who} signed in",
    AuthEvent.SIGNED_OUT: "{who} signed out",
    AuthEvent.USER_UPDATED: "{who} updated their account",
    AuthEvent.PASSWORD_RECOVERY: "{who} recovered their password",
}


@dataclass
class ActivityEntry:
    event: AuthEvent
    description: str
    user_id: Optional[str]
    timestamp: float


class ActivityLog:
    def __init__(self, max_entries: int = MAX_ENTRIES):
        self._entries: deque[ActivityEntry] = deque(maxlen=max_entries)
        self._lock = threading.Lock()
        self._subscription: Optional[Subscription] = None

    def attach(self, auth: AuthClient) -> None:
        self.detach()
        self._subscription = auth.on_auth_state_change(self.record)

    def detach(self) -> None:
        if self._subscription:
            self._subscription.unsubscribe()
            self._subscription = None

    def record(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        template = DESCRIPTIONS.get(event)
        if not template:
            # Token refreshes are routine and not shown.
            return
        who = session.user.email if session else "A user"
        entry = ActivityEntry(
            event=event,
            description=template.format(who=who),
            user_id=session.user.id if session else None,
            timestamp=time.time(),
        )
        with self._lock:
            self._entries.appendleft(entry)
        logger.info("Auth event %s for user %s", event, entry.user_id or "-")

    def recent(self, limit: int = 10) -> list[ActivityEntry]:
        with self._lock:
            return list(self._entries)[:limit]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
