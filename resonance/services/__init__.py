"""Data-access layer: every call returns a :class:`Result`."""

from .auth import AuthService
from .clients import ClientService
from .results import Result
from .tickets import TicketService

__all__ = ["AuthService", "ClientService", "Result", "TicketService"]
