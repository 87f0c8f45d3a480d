from giftexchange.db.models import (
    Base,
    ExchangeExclusion,
    ExchangeParticipant,
    GiftExchange,
)
from giftexchange.db.session import SessionLocal, get_session, init_engine

__all__ = [
    "Base",
    "ExchangeExclusion",
    "ExchangeParticipant",
    "GiftExchange",
    "SessionLocal",
    "get_session",
    "init_engine",
]
