from __future__ import annotations

from dataclasses import dataclass, field

from resonance.routing.router import Router


@dataclass(frozen=True, slots=True)
class NavLink:
    label: str
    path: str


@dataclass(frozen=True, slots=True)
class PortalDefinition:
    """Static description of one portal: its routes and sidebar links."""

    name: str
    title: str
    router: Router
    nav_links: tuple[NavLink, ...] = field(default_factory=tuple)
    layouts: frozenset[str] = field(default_factory=frozenset)
