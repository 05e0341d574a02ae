"""HTTP route handlers."""

from . import notes, system, users

__all__ = ["notes", "system", "users"]
