"""API route modules."""
from quiz_api.routes import access, sessions, tests, users

__all__ = ["access", "sessions", "tests", "users"]
