"""Account repositories package."""

from modules.accounts.repositories.django_repository import AddressDjangoRepository
from modules.accounts.repositories.interfaces import IAddressRepository

__all__ = ["AddressDjangoRepository", "IAddressRepository"]
