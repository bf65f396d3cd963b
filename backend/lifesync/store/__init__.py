"""Owner-scoped persistence helpers for users and events."""
