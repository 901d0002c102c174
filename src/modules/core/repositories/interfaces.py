"""Generic repository contract.

Every bounded context exposes an ``I<Entity>Repository`` extending
``IRepository[T]``; services receive one through their constructor and
never import the ORM themselves.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, Sequence, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base repository for entity type ``T``."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Return the entity, or ``None`` for unknown or malformed ids."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Sequence[T]:
        """List entities with optional ORM-style filters."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (create or update) an entity."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Remove an entity by ID (soft or hard delete)."""
