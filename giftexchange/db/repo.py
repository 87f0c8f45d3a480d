from __future__ import annotations

import datetime
from typing import Dict, List, Optional

from sqlalchemy import and_, delete, select, update

from giftexchange.db.models import ExchangeExclusion, ExchangeParticipant, GiftExchange


def get_exchange(session, exchange_id: int) -> Optional[GiftExchange]:
    return session.scalar(select(GiftExchange).where(GiftExchange.id == exchange_id))


def create_exchange(
    session,
    name: str,
    created_by: str,
    registration_deadline: Optional[datetime.datetime] = None,
) -> GiftExchange:
    exchange = GiftExchange(
        name=name,
        created_by=created_by,
        registration_deadline=registration_deadline,
        is_active=True,
        assignments_generated=False,
    )
    session.add(exchange)
    session.flush()
    return exchange


def delete_exchange(session, exchange: GiftExchange) -> None:
    session.delete(exchange)
    session.flush()


def get_participant(session, exchange_id: int, user_id: str) -> Optional[ExchangeParticipant]:
    return session.scalar(
        select(ExchangeParticipant).where(
            and_(
                ExchangeParticipant.exchange_id == exchange_id,
                ExchangeParticipant.user_id == user_id,
            )
        )
    )


def add_participant(
    session,
    exchange_id: int,
    user_id: str,
    opted_in: bool = True,
) -> Optional[ExchangeParticipant]:
    if get_participant(session, exchange_id, user_id):
        return None
    participant = ExchangeParticipant(exchange_id=exchange_id, user_id=user_id, opted_in=opted_in)
    session.add(participant)
    session.flush()
    return participant


def remove_participant(session, exchange_id: int, user_id: str) -> bool:
    result = session.execute(
        delete(ExchangeParticipant).where(
            and_(
                ExchangeParticipant.exchange_id == exchange_id,
                ExchangeParticipant.user_id == user_id,
            )
        )
    )
    return (result.rowcount or 0) > 0


def list_participants(session, exchange_id: int, opted_in_only: bool = True) -> List[ExchangeParticipant]:
    query = select(ExchangeParticipant).where(ExchangeParticipant.exchange_id == exchange_id)
    if opted_in_only:
        query = query.where(ExchangeParticipant.opted_in.is_(True))
    return list(session.scalars(query.order_by(ExchangeParticipant.id)).all())


def list_exclusions(session, exchange_id: int) -> List[ExchangeExclusion]:
    return list(
        session.scalars(
            select(ExchangeExclusion)
            .where(ExchangeExclusion.exchange_id == exchange_id)
            .order_by(ExchangeExclusion.id)
        ).all()
    )


def get_exclusion(
    session,
    exchange_id: int,
    giver_user_id: str,
    recipient_user_id: str,
) -> Optional[ExchangeExclusion]:
    return session.scalar(
        select(ExchangeExclusion).where(
            and_(
                ExchangeExclusion.exchange_id == exchange_id,
                ExchangeExclusion.giver_user_id == giver_user_id,
                ExchangeExclusion.recipient_user_id == recipient_user_id,
            )
        )
    )


def add_exclusion(session, exchange_id: int, giver_user_id: str, recipient_user_id: str) -> bool:
    if get_exclusion(session, exchange_id, giver_user_id, recipient_user_id):
        return False
    session.add(
        ExchangeExclusion(
            exchange_id=exchange_id,
            giver_user_id=giver_user_id,
            recipient_user_id=recipient_user_id,
        )
    )
    session.flush()
    return True


def remove_exclusion(session, exchange_id: int, giver_user_id: str, recipient_user_id: str) -> int:
    result = session.execute(
        delete(ExchangeExclusion).where(
            and_(
                ExchangeExclusion.exchange_id == exchange_id,
                ExchangeExclusion.giver_user_id == giver_user_id,
                ExchangeExclusion.recipient_user_id == recipient_user_id,
            )
        )
    )
    return result.rowcount or 0


def lock_open_exchange(session, exchange_id: int) -> bool:
    """Take the write lock on an exchange whose assignments are not generated yet.

    Returns False when the exchange is gone or already generated. The lock is
    held until the session's transaction ends.
    """
    result = session.execute(
        update(GiftExchange)
        .where(
            and_(
                GiftExchange.id == exchange_id,
                GiftExchange.assignments_generated == False,  # noqa: E712
            )
        )
        .values(is_active=GiftExchange.is_active)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def claim_assignment_generation(
    session,
    exchange_id: int,
    assigned_at: datetime.datetime,
) -> bool:
    """Flip ``assignments_generated`` only if nobody has flipped it yet.

    Exactly one of several concurrent generate requests sees a row count of
    one, and it keeps the exchange row locked until its transaction ends.
    """
    result = session.execute(
        update(GiftExchange)
        .where(
            and_(
                GiftExchange.id == exchange_id,
                GiftExchange.assignments_generated == False,  # noqa: E712
            )
        )
        .values(assignments_generated=True, assigned_at=assigned_at)
        .execution_options(synchronize_session="evaluate")
    )
    return result.rowcount == 1


def release_assignment_generation(session, exchange_id: int) -> None:
    session.execute(
        update(GiftExchange)
        .where(
            and_(
                GiftExchange.id == exchange_id,
                GiftExchange.assignments_generated == True,  # noqa: E712
            )
        )
        .values(assignments_generated=False, assigned_at=None)
        .execution_options(synchronize_session="evaluate")
    )


def update_assignment_seed(session, exchange: GiftExchange, seed: Optional[int]) -> None:
    exchange.last_assignment_seed = seed


def save_assignments(session, exchange_id: int, assignments: Dict[str, str]) -> int:
    participants = list_participants(session, exchange_id, opted_in_only=False)
    updated = 0
    for participant in participants:
        if participant.user_id in assignments:
            participant.assigned_to_user_id = assignments[participant.user_id]
            updated += 1
    session.flush()
    return updated


def load_assignments(session, exchange_id: int) -> Dict[str, str]:
    return {
        participant.user_id: participant.assigned_to_user_id
        for participant in list_participants(session, exchange_id, opted_in_only=False)
        if participant.assigned_to_user_id is not None
    }
