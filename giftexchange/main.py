from __future__ import annotations

from typing import Optional

from loguru import logger

from giftexchange.core.config import Settings, load_settings
from giftexchange.core.logging import setup_logging
from giftexchange.db import get_session, init_engine
from giftexchange.services import exchange_flow
from giftexchange.services.validation import ValidationReport

USER_FACING_FAILURE = "Could not generate assignments. Check exclusion rules and participant count."


def bootstrap(settings: Optional[Settings] = None) -> Settings:
    settings = settings or load_settings()
    setup_logging(settings.log_level, settings.log_path)
    init_engine(settings.database_url, create_schema=settings.database_url.startswith("sqlite"))

    logger.info("gift exchange engine ready")
    logger.info("Strategy     - {strategy}", strategy=settings.assignment_strategy)
    logger.info("Max attempts - {attempts}", attempts=settings.assignment_max_attempts)
    return settings


def log_request_exception(action: str, exchange_id: int, user_id: Optional[str], error: Exception) -> None:
    logger.bind(action=action, exchange_id=exchange_id, user_id=user_id).exception(
        "Request error: {error}", error=str(error)
    )


def generate_for_exchange(
    settings: Settings,
    exchange_id: int,
    requested_by: str,
    seed: Optional[int] = None,
) -> exchange_flow.GenerationOutcome:
    """Run one generate request in its own transaction."""
    try:
        with get_session() as session:
            return exchange_flow.generate_exchange_assignments(
                session,
                exchange_id,
                requested_by,
                seed=seed,
                max_attempts=settings.assignment_max_attempts,
                strategy=settings.assignment_strategy,
            )
    except Exception as exc:
        log_request_exception("generate", exchange_id, requested_by, exc)
        return exchange_flow.GenerationOutcome(False, USER_FACING_FAILURE)


def verify_exchange(exchange_id: int) -> ValidationReport:
    with get_session() as session:
        return exchange_flow.verify_exchange_assignments(session, exchange_id)
