"""API package exports."""
from . import routes_admin, routes_events, routes_users

__all__ = [
    "routes_admin",
    "routes_events",
    "routes_users",
]
