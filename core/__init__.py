"""Shared, dependency-free helpers for prompt construction."""
