"""HTTP API for liftsync."""

from .app import create_app

__all__ = ["create_app"]
