from uuid import uuid4

from sqlalchemy import Column, String, Uuid
from sqlalchemy.orm import relationship

from buyer_intake.models.base import Base, UTCDateTime, utcnow


class User(Base):
    """Authenticated person who owns buyer records and authors history."""

    __tablename__ = "users"
    id = Column(Uuid, primary_key=True, default=uuid4)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(120))
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    buyers = relationship("Buyer", back_populates="owner")

    @property
    def display_name(self) -> str:
        return self.name or self.email
