"""Shared helpers for routers."""
