from __future__ import annotations

from resonance.portals.admin import ADMIN_PORTAL
from resonance.ui.app import run_portal


def main() -> None:
    run_portal(ADMIN_PORTAL)


if __name__ == "__main__":
    main()
