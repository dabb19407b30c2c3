from __future__ import annotations

import uuid


def new_uuid() -> str:
    """Generate a UUID4 string."""
    return str(uuid.uuid4())


def new_record_id() -> str:
    """Generate an id for a record created on this client."""
    return new_uuid()


def new_subscription_id() -> str:
    """Generate an id for a change-channel subscription."""
    return new_uuid()
