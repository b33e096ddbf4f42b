from __future__ import annotations

from .base import Page


class HomePage(Page):
    title = "Home"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.signing_out = False

    @property
    def user_email(self) -> str:
        session = self.session
        return (session.email if session else None) or "None"

    def sign_out(self) -> bool:
        self.signing_out = True
        self.error = None
        try:
            result = self.call(self.context.auth_service.sign_out)
        finally:
            self.signing_out = False
        if not result.ok:
            self.error = result.error_message
            return False
        self.navigate(self.context.settings.sign_in_path, replace=True)
        return True


class ProtectedPage(Page):
    title = "Protected"


class NotFoundPage(Page):
    title = "Page not found"
