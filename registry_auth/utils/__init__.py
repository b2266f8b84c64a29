"""Shared utilities for registry-auth."""
