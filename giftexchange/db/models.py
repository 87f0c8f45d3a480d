from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class GiftExchange(Base):
    __tablename__ = "gift_exchanges"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    created_by = Column(String, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    registration_deadline = Column(DateTime(timezone=True), nullable=True)
    assignments_generated = Column(Boolean, default=False, nullable=False)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    last_assignment_seed = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    participants = relationship(
        "ExchangeParticipant",
        back_populates="exchange",
        cascade="all, delete-orphan",
    )
    exclusions = relationship(
        "ExchangeExclusion",
        back_populates="exchange",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return (
            f"<GiftExchange(id={self.id}, name={self.name}, "
            f"assignments_generated={self.assignments_generated})>"
        )


class ExchangeParticipant(Base):
    __tablename__ = "gift_exchange_participants"

    id = Column(Integer, primary_key=True)
    exchange_id = Column(Integer, ForeignKey("gift_exchanges.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String, nullable=False)
    opted_in = Column(Boolean, default=True, nullable=False)
    assigned_to_user_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    exchange = relationship("GiftExchange", back_populates="participants")

    __table_args__ = (
        UniqueConstraint("exchange_id", "user_id", name="uq_gift_exchange_participants_exchange_user"),
    )

    def __repr__(self) -> str:
        return (
            "<ExchangeParticipant(exchange_id={0}, user_id={1}, opted_in={2})>"
        ).format(self.exchange_id, self.user_id, self.opted_in)


class ExchangeExclusion(Base):
    __tablename__ = "gift_exchange_exclusions"

    id = Column(Integer, primary_key=True)
    exchange_id = Column(Integer, ForeignKey("gift_exchanges.id", ondelete="CASCADE"), nullable=False)
    giver_user_id = Column(String, nullable=False)
    recipient_user_id = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    exchange = relationship("GiftExchange", back_populates="exclusions")

    __table_args__ = (
        UniqueConstraint(
            "exchange_id",
            "giver_user_id",
            "recipient_user_id",
            name="uq_gift_exchange_exclusions_pair",
        ),
    )
