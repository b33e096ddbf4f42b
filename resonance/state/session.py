from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from resonance.backend.auth import AuthGateway, AuthSubscription
from resonance.backend.errors import BackendError
from resonance.domain.models import Identity, Role

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


SessionListener = Callable[[str, "SessionStore"], None]


class SessionStore:
    """Current identity of the browser tab, fed by the auth event stream."""

    def __init__(self, auth: AuthGateway) -> None:
        self._auth = auth
        self._session: Identity | None = None
        self._resolved = False
        self._subscription: AuthSubscription | None = None
        self._listeners: list[SessionListener] = []

    @property
    def session(self) -> Identity | None:
        return self._session

    @property
    def role(self) -> Role | None:
        return None if self._session is None else self._session.role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_resolved(self) -> bool:
        return self._resolved

    @property
    def is_started(self) -> bool:
        return self._subscription is not None

    def start(self) -> None:
        """Subscribe to auth events and publish the initial session."""

        if self._subscription is not None:
            return
        self._subscription = self._auth.on_auth_state_change(self.handle_auth_event)
        try:
            initial = self._auth.current_session()
        except BackendError as exc:
            logger.warning("Could not read the initial session: %s", exc)
            initial = None
        self.handle_auth_event(AuthEvent.INITIAL_SESSION.value, initial)

    def stop(self) -> None:
        if self._subscription is None:
            return
        self._subscription.unsubscribe()
        self._subscription = None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def handle_auth_event(self, event: str, session: Identity | None) -> None:
        if event == AuthEvent.SIGNED_OUT.value:
            session = None
        self._session = session
        self._resolved = True
        logger.debug("Auth event %s (user=%s)", event, None if session is None else session.user_id)
        for listener in list(self._listeners):
            try:
                listener(event, self)
            except Exception:
                logger.exception("Session listener failed on %s", event)
