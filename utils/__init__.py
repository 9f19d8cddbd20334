"""Shared utilities for hostfit: logging setup and exceptions."""
