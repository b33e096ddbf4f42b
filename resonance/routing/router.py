from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

PageFactory = Callable[..., Any]


def split_path(path: str) -> tuple[str, ...]:
    cleaned = path.split("?", 1)[0].split("#", 1)[0]
    return tuple(segment for segment in cleaned.strip("/").split("/") if segment)


@dataclass(frozen=True, slots=True)
class Route:
    """Maps a path pattern such as ``/tickets/:id`` to a page factory."""

    path: str
    page: PageFactory
    guarded: bool = True
    layout: str | None = None
    segments: tuple[str, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "segments", split_path(self.path))

    @property
    def rank(self) -> int:
        return sum(3 if not segment.startswith(":") else 2 for segment in self.segments)

    def match(self, segments: Sequence[str]) -> dict[str, str] | None:
        if len(segments) != len(self.segments):
            return None
        params: dict[str, str] = {}
        for pattern, value in zip(self.segments, segments):
            if pattern.startswith(":"):
                params[pattern[1:]] = value
            elif pattern != value:
                return None
        return params


@dataclass(frozen=True, slots=True)
class RouteMatch:
    route: Route
    params: Mapping[str, str]
    path: str

    @property
    def is_not_found(self) -> bool:
        return self.route.path == "*"


class Router:
    """Static route table with a catch-all fallback.

    Static segments outrank ``:param`` segments, so ``/tickets/new`` wins over
    ``/tickets/:id`` regardless of declaration order.
    """

    def __init__(self, routes: Sequence[Route], not_found: PageFactory) -> None:
        self._routes = tuple(routes)
        self._not_found = Route("*", not_found, guarded=False)

    @property
    def routes(self) -> tuple[Route, ...]:
        return self._routes

    def resolve(self, path: str) -> RouteMatch:
        segments = split_path(path)
        best: tuple[Route, dict[str, str]] | None = None
        for route in self._routes:
            params = route.match(segments)
            if params is None:
                continue
            if best is None or route.rank > best[0].rank:
                best = (route, params)
        normalised = "/" + "/".join(segments)
        if best is None:
            return RouteMatch(self._not_found, {}, normalised)
        return RouteMatch(best[0], best[1], normalised)
