from buyer_intake.models.base import Base
from buyer_intake.models.user import User
from buyer_intake.models.buyer import Buyer
from buyer_intake.models.buyer_history import BuyerHistory

# Import event listeners to register them
from buyer_intake.models import listeners  # noqa: F401

__all__ = [
    "Base",
    "User",
    "Buyer",
    "BuyerHistory",
]
