"""Product domain exceptions."""

from __future__ import annotations


class ProductNotFound(Exception):
    """No product matches the given id or slug."""
