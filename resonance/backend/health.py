from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BackendHealthChecker:
    """Probe the hosted backend's auth health endpoint."""

    base_url: str
    api_key: str
    timeout: float = 5.0
    transport: httpx.BaseTransport | None = None

    def _build_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/auth/v1/health"

    def check(self) -> bool:
        headers = {"apikey": self.api_key, "Accept": "application/json"}
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(self._build_url(), headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Backend health check failed: %s", exc)
            return False
        if response.status_code >= 400:
            logger.warning("Backend health check returned %s", response.status_code)
            return False
        return True
