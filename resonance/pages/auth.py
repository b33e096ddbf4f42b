from __future__ import annotations

import logging
from typing import Mapping
from urllib.parse import parse_qs

from resonance.domain.models import Invite
from resonance.portals.context import PortalContext

from .base import Page, missing_fields, required_message

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
NO_INVITATION = "No valid invitation found for this email address."
CONFIRM_EMAIL = "Check your inbox to confirm your email address, then sign in."


class _AnonymousOnlyPage(Page):
    """Auth pages that send signed-in users home without rendering."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.redirected = False
        self.submitting = False

    def load(self) -> None:
        if self.session is not None:
            self.redirected = True
            self.navigate("/", replace=True)

    @property
    def should_render_form(self) -> bool:
        return not self.redirected


class SignInPage(_AnonymousOnlyPage):
    title = "Sign In"

    def submit(self, email: str, password: str) -> bool:
        missing = missing_fields(email=email, password=password)
        if missing:
            self.error = required_message(missing)
            return False

        self.submitting = True
        self.error = None
        try:
            result = self.call(self.context.auth_service.sign_in, email.strip(), password)
        finally:
            self.submitting = False
        if not result.ok:
            self.error = result.error_message
            return False
        self.navigate("/", replace=True)
        return True


class SignUpPage(_AnonymousOnlyPage):
    """Plain email and password registration (admin portal)."""

    title = "Sign Up"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.completed = False

    def submit(self, email: str, password: str) -> bool:
        missing = missing_fields(email=email, password=password)
        if missing:
            self.error = required_message(missing)
            return False

        self.submitting = True
        self.error = None
        try:
            result = self.call(self.context.auth_service.sign_up, email.strip(), password)
        finally:
            self.submitting = False
        if not result.ok:
            self.error = result.error_message
            return False
        self.completed = True
        return True


class InviteSignUpPage(_AnonymousOnlyPage):
    """Two-step registration for invited client contacts."""

    title = "Sign Up"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.step = "email"
        self.email = ""
        self.invite: Invite | None = None

    def check_invite(self, email: str) -> bool:
        if missing_fields(email=email):
            self.error = required_message(["email"])
            return False

        self.submitting = True
        self.error = None
        try:
            result = self.call(self.context.auth_service.validate_invite, email.strip())
        finally:
            self.submitting = False
        if not result.ok or result.data is None:
            self.error = NO_INVITATION
            return False
        self.email = email.strip()
        self.invite = result.data
        self.step = "details"
        return True

    def submit(self, full_name: str, password: str) -> bool:
        missing = missing_fields(full_name=full_name, password=password)
        if missing:
            self.error = required_message(missing)
            return False
        if len(password) < MIN_PASSWORD_LENGTH:
            self.error = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            return False

        self.submitting = True
        self.error = None
        try:
            result = self.call(
                self.context.auth_service.sign_up_with_invite,
                self.email,
                password,
                full_name.strip(),
            )
        finally:
            self.submitting = False
        if not result.ok:
            self.error = result.error_message
            return False
        self.step = "done"
        return True

    def back(self) -> None:
        self.step = "email"
        self.invite = None
        self.error = None

    @property
    def invite_role_label(self) -> str:
        if self.invite is None:
            return ""
        return self.invite.role.value.replace("_", " ").lower()


def parse_fragment(fragment: str) -> dict[str, str]:
    """Parse ``#access_token=...&refresh_token=...`` into a dict."""

    parsed = parse_qs(fragment.lstrip("#"), keep_blank_values=False)
    return {key: values[0] for key, values in parsed.items() if values}


def has_callback_tokens(query: Mapping[str, str]) -> bool:
    """Whether the callback URL already carries its tokens as query parameters."""

    return "fragment" in query or "access_token" in query


class AuthCallbackPage(Page):
    """Establish a session from the tokens of an email confirmation link."""

    title = "Signing you in"

    def __init__(
        self,
        context: PortalContext,
        params: Mapping[str, str] | None = None,
        query: Mapping[str, str] | None = None,
        *,
        fragment: str | None = None,
    ) -> None:
        super().__init__(context, params, query)
        self.fragment = fragment
        self.redirect_delay: float | None = None

    def _tokens(self) -> Mapping[str, str]:
        if self.fragment is not None:
            return parse_fragment(self.fragment)
        if "fragment" in self.query:
            return parse_fragment(self.query["fragment"])
        return self.query

    def load(self) -> None:
        self.loading = True
        tokens = self._tokens()
        result = self.call(
            self.context.auth_service.establish_session,
            tokens.get("access_token", ""),
            tokens.get("refresh_token", ""),
        )
        self.loading = False
        if result.ok:
            self.navigate("/", replace=True)
            return
        logger.error("Error handling auth callback: %s", result.error)
        self.error = result.error_message or "An error occurred during email confirmation"
        self.redirect_delay = self.context.settings.auth_callback_redirect_delay

    def finish(self) -> None:
        """Leave a failed callback for the sign-in page."""

        self.navigate(self.context.settings.sign_in_path, replace=True)
