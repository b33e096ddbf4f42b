from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Protocol

from supabase import Client as SupabaseClient
from supabase_auth.errors import AuthError

from resonance.domain.models import AuthUser, Identity, Role

from .errors import BackendError, NotAuthenticatedError, from_auth

logger = logging.getLogger(__name__)

AuthListener = Callable[[str, Identity | None], None]


class AuthSubscription(Protocol):
    def unsubscribe(self) -> None: ...


class AuthGateway(Protocol):
    """Operations the portals need from the hosted auth service."""

    def sign_in_with_password(self, email: str, password: str) -> Identity: ...

    def sign_up(self, email: str, password: str, metadata: Mapping[str, Any] | None = None) -> AuthUser: ...

    def sign_out(self) -> None: ...

    def set_session(self, access_token: str, refresh_token: str) -> Identity: ...

    def current_session(self) -> Identity | None: ...

    def current_user(self) -> AuthUser | None: ...

    def on_auth_state_change(self, listener: AuthListener) -> AuthSubscription: ...


class SupabaseAuthGateway:
    """Adapter over ``supabase.auth`` returning domain identities."""

    def __init__(self, client: SupabaseClient) -> None:
        self._auth = client.auth

    def sign_in_with_password(self, email: str, password: str) -> Identity:
        try:
            response = self._auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as exc:
            raise from_auth(exc) from exc
        identity = session_to_identity(response.session)
        if identity is None:
            raise NotAuthenticatedError("Sign-in did not return a session")
        return identity

    def sign_up(self, email: str, password: str, metadata: Mapping[str, Any] | None = None) -> AuthUser:
        credentials: dict[str, Any] = {"email": email, "password": password}
        if metadata:
            credentials["options"] = {"data": dict(metadata)}
        try:
            response = self._auth.sign_up(credentials)
        except AuthError as exc:
            raise from_auth(exc) from exc
        user = user_to_auth_user(response.user)
        if user is None:
            raise BackendError("Sign-up did not return a user")
        return user

    def sign_out(self) -> None:
        try:
            self._auth.sign_out()
        except AuthError as exc:
            raise from_auth(exc) from exc

    def set_session(self, access_token: str, refresh_token: str) -> Identity:
        try:
            response = self._auth.set_session(access_token, refresh_token)
        except AuthError as exc:
            raise from_auth(exc) from exc
        identity = session_to_identity(response.session)
        if identity is None:
            raise NotAuthenticatedError("Tokens did not produce a session")
        return identity

    def current_session(self) -> Identity | None:
        try:
            return session_to_identity(self._auth.get_session())
        except AuthError as exc:
            raise from_auth(exc) from exc

    def current_user(self) -> AuthUser | None:
        try:
            response = self._auth.get_user()
        except AuthError as exc:
            raise from_auth(exc) from exc
        if response is None:
            return None
        return user_to_auth_user(response.user)

    def on_auth_state_change(self, listener: AuthListener) -> AuthSubscription:
        def callback(event: Any, session: Any) -> None:
            listener(str(getattr(event, "value", event)), session_to_identity(session))

        return self._auth.on_auth_state_change(callback)


def _metadata(user: Any, name: str) -> dict[str, Any]:
    value = getattr(user, name, None)
    return dict(value) if isinstance(value, Mapping) else {}


def user_to_auth_user(user: Any) -> AuthUser | None:
    if user is None:
        return None
    app_metadata = _metadata(user, "app_metadata")
    user_metadata = _metadata(user, "user_metadata")
    role = Role.parse(app_metadata.get("role")) or Role.parse(user_metadata.get("role"))
    client_id = user_metadata.get("client_id") or app_metadata.get("client_id")
    return AuthUser(
        user_id=str(user.id),
        email=getattr(user, "email", None),
        role=role,
        client_id=None if client_id is None else str(client_id),
        full_name=user_metadata.get("full_name"),
        metadata=user_metadata,
    )


def session_to_identity(session: Any) -> Identity | None:
    """Convert a Supabase session into an :class:`Identity`."""

    if session is None:
        return None
    user = user_to_auth_user(getattr(session, "user", None))
    if user is None:
        logger.warning("Ignoring session without a user")
        return None
    return Identity(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user_id=user.user_id,
        email=user.email,
        role=user.role,
        client_id=user.client_id,
        full_name=user.full_name,
    )
