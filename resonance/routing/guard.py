from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from resonance.state.session import SessionStore

logger = logging.getLogger(__name__)


class GuardState(str, Enum):
    UNKNOWN = "unknown"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True, slots=True)
class GuardDecision:
    state: GuardState
    redirect_to: str | None = None

    @property
    def should_render(self) -> bool:
        return self.state is GuardState.AUTHENTICATED


class RouteGuard:
    """Gate guarded routes behind a resolved session."""

    def __init__(self, session_store: SessionStore, *, sign_in_path: str = "/auth/sign-in") -> None:
        self._sign_in_path = sign_in_path
        self._state = self._state_for(session_store)
        self._unsubscribe = session_store.subscribe(self._on_session_event)

    @property
    def state(self) -> GuardState:
        return self._state

    def evaluate(self) -> GuardDecision:
        if self._state is GuardState.ANONYMOUS:
            return GuardDecision(self._state, redirect_to=self._sign_in_path)
        return GuardDecision(self._state)

    def close(self) -> None:
        self._unsubscribe()

    def _on_session_event(self, event: str, store: SessionStore) -> None:
        previous = self._state
        self._state = self._state_for(store)
        if previous is not self._state:
            logger.debug("Route guard %s -> %s on %s", previous.value, self._state.value, event)

    @staticmethod
    def _state_for(store: SessionStore) -> GuardState:
        if not store.is_resolved:
            return GuardState.UNKNOWN
        if store.session is None:
            return GuardState.ANONYMOUS
        return GuardState.AUTHENTICATED
