from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, TypeVar

from resonance.backend.errors import UnexpectedError
from resonance.domain.models import Identity
from resonance.portals.context import PortalContext
from resonance.services.results import Result

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Something went wrong. Please try again."

T = TypeVar("T")


class Page:
    """Controller behind one routed view.

    ``mount`` runs once per navigation; the view renders from the public
    attributes (``loading``, ``error`` and page data).
    """

    title = ""

    def __init__(
        self,
        context: PortalContext,
        params: Mapping[str, str] | None = None,
        query: Mapping[str, str] | None = None,
    ) -> None:
        self.context = context
        self.params = dict(params or {})
        self.query = dict(query or {})
        self.loading = False
        self.error: str | None = None
        self.mounted = False

    @property
    def session(self) -> Identity | None:
        return self.context.session_store.session

    def mount(self) -> None:
        self.mounted = True
        self.load()

    def load(self) -> None:
        """Issue the page's reads. Pages without data keep the default."""

    def navigate(self, path: str, query: Mapping[str, str] | None = None, *, replace: bool = False) -> None:
        self.context.navigator.navigate(path, query, replace=replace)

    def call(self, operation: Callable[..., Result[T]], *args: Any, **kwargs: Any) -> Result[T]:
        """Run a data-access call, converting unexpected failures to a result."""

        try:
            return operation(*args, **kwargs)
        except Exception:
            logger.exception("%s failed in %s", getattr(operation, "__name__", "operation"), type(self).__name__)
            return Result.failure(UnexpectedError(GENERIC_FAILURE))


def missing_fields(**values: Any) -> list[str]:
    """Names of required form values that are blank."""

    return [name for name, value in values.items() if value is None or not str(value).strip()]


def required_message(missing: list[str]) -> str:
    labels = [name.replace("_", " ") for name in missing]
    if len(labels) == 1:
        return f"{labels[0].capitalize()} is required"
    return f"{', '.join(labels).capitalize()} are required"
