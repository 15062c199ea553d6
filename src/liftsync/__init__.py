"""liftsync: offline-first sync and progression engine for workout tracking."""

__version__ = "0.1.0"
