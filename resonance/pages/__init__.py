"""Page controllers shared by the admin and client portals."""

from .auth import AuthCallbackPage, InviteSignUpPage, SignInPage, SignUpPage, has_callback_tokens, parse_fragment
from .base import GENERIC_FAILURE, Page
from .clients import AddClientPage, ClientPage, ClientsListPage
from .dashboard import DashboardLayout, DashboardPage
from .home import HomePage, NotFoundPage, ProtectedPage
from .tickets import AddTicketPage, TicketDetailPage, TicketsListPage

__all__ = [
    "GENERIC_FAILURE",
    "AddClientPage",
    "AddTicketPage",
    "AuthCallbackPage",
    "ClientPage",
    "ClientsListPage",
    "DashboardLayout",
    "DashboardPage",
    "HomePage",
    "InviteSignUpPage",
    "NotFoundPage",
    "Page",
    "ProtectedPage",
    "SignInPage",
    "SignUpPage",
    "TicketDetailPage",
    "TicketsListPage",
    "has_callback_tokens",
    "parse_fragment",
]
