from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import UUID


@runtime_checkable
class Identifiable(Protocol):
    """Anything with a stable identity, a display name and a creation time."""

    id: UUID
    name: str
    created_at: datetime
