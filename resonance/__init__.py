"""Resonance helpdesk: admin and client support portals."""

__version__ = "0.1.0"
