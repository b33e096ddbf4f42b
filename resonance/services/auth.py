from __future__ import annotations

import logging
from dataclasses import dataclass, field

from opentelemetry import trace

from resonance.backend.client import Backend
from resonance.backend.errors import BackendError, InvalidInviteError, ValidationError
from resonance.domain.models import AuthUser, Identity, Invite, Role

from .results import Clock, Result, utcnow

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

NO_VALID_INVITE = "No valid invite found for this email address"


@dataclass(slots=True)
class AuthService:
    """Sign-in, sign-up and invite redemption."""

    backend: Backend
    clock: Clock = field(default=utcnow)

    def sign_in(self, email: str, password: str) -> Result[Identity]:
        try:
            return Result.success(self.backend.auth.sign_in_with_password(email, password))
        except BackendError as exc:
            logger.info("Sign-in failed for %s: %s", email, exc)
            return Result.failure(exc)

    def sign_up(self, email: str, password: str) -> Result[AuthUser]:
        try:
            return Result.success(self.backend.auth.sign_up(email, password))
        except BackendError as exc:
            return Result.failure(exc)

    def sign_out(self) -> Result[None]:
        try:
            self.backend.auth.sign_out()
        except BackendError as exc:
            return Result.failure(exc)
        return Result.success(None)

    def establish_session(self, access_token: str, refresh_token: str) -> Result[Identity]:
        if not access_token or not refresh_token:
            return Result.failure(ValidationError("No tokens found in URL"))
        try:
            return Result.success(self.backend.auth.set_session(access_token, refresh_token))
        except BackendError as exc:
            return Result.failure(exc)

    def current_user(self) -> Result[AuthUser]:
        try:
            return Result.success(self.backend.auth.current_user())
        except BackendError as exc:
            return Result.failure(exc)

    def validate_invite(self, email: str) -> Result[Invite]:
        """Return the unused, unexpired invite for ``email``."""

        try:
            invite = self.backend.invites.find_valid_by_email(email.strip(), now=self.clock())
        except BackendError as exc:
            logger.info("Invite lookup for %s failed: %s", email, exc)
            return Result.failure(InvalidInviteError(NO_VALID_INVITE, code=exc.code))
        if invite is None:
            return Result.failure(InvalidInviteError(NO_VALID_INVITE))
        return Result.success(invite)

    def sign_up_with_invite(self, email: str, password: str, full_name: str) -> Result[AuthUser]:
        """Register a client contact against a pending invite.

        Steps run in order and are never compensated: once the auth user exists,
        a failure to consume the invite or to write the profile is returned
        as-is and leaves the new identity in place.
        """

        with tracer.start_as_current_span("auth.sign_up_with_invite"):
            validated = self.validate_invite(email)
            if not validated.ok or validated.data is None:
                return Result.failure(validated.error or InvalidInviteError(NO_VALID_INVITE))
            invite = validated.data

            metadata = {
                "role": Role.CLIENT_CONTACT.value,
                "client_id": invite.client_id,
                "full_name": full_name,
            }
            try:
                user = self.backend.auth.sign_up(email.strip(), password, metadata)
            except BackendError as exc:
                return Result.failure(exc)

            try:
                self.backend.invites.update_fields(invite.id, {"used_at": self.clock().isoformat()})
            except BackendError as exc:
                logger.error(
                    "User %s created but invite %s could not be marked used: %s",
                    user.user_id,
                    invite.id,
                    exc,
                )
                return Result.failure(exc)

            profile = {
                "id": user.user_id,
                "full_name": full_name,
                "role": Role.CLIENT_CONTACT.value,
                "client_id": invite.client_id,
            }
            try:
                self.backend.profiles.insert(profile)
            except BackendError as exc:
                logger.error("User %s created without a profile: %s", user.user_id, exc)
                return Result.failure(exc)

            logger.info("Invite %s redeemed by %s", invite.id, user.user_id)
            return Result.success(user)
