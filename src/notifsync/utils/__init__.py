"""Utilities for notifsync."""
