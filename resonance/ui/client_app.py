from __future__ import annotations

from resonance.portals.client import CLIENT_PORTAL
from resonance.ui.app import run_portal


def main() -> None:
    run_portal(CLIENT_PORTAL)


if __name__ == "__main__":
    main()
