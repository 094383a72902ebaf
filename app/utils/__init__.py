# App utilities
import uuid


def generate_habit_id() -> str:
    """Opaque id for a new habit."""
    return uuid.uuid4().hex
