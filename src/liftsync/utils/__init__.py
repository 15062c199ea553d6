"""Shared helpers for liftsync."""
