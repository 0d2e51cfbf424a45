import uuid


def generate_uid() -> str:
    """Return a fresh, globally unique identifier for messages and runs."""
    return uuid.uuid4().hex
