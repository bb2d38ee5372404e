"""Repository layer – all database access goes through here.

Repositories encapsulate SQLAlchemy queries so that the service layer
only contains business logic.
"""

from buyer_intake.repositories.buyer_repository import BuyerRepository
from buyer_intake.repositories.history_repository import BuyerHistoryRepository
from buyer_intake.repositories.user_repository import UserRepository

__all__ = [
    "BuyerRepository",
    "BuyerHistoryRepository",
    "UserRepository",
]
