"""Remote store clients for liftsync."""

from .base import BaseRemoteStore, CloudSnapshot, RemoteStore
from .file_store import JsonDirectoryRemoteStore
from .memory import InMemoryRemoteStore

__all__ = [
    "BaseRemoteStore",
    "CloudSnapshot",
    "InMemoryRemoteStore",
    "JsonDirectoryRemoteStore",
    "RemoteStore",
]
