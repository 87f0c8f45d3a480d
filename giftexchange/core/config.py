import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

ASSIGNMENT_STRATEGIES = ("retry", "matching")


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str
    log_path: str
    assignment_max_attempts: int = 100
    assignment_strategy: str = "retry"


def load_settings() -> Settings:
    database_url = os.getenv("DATABASE_URL")
    log_level = os.getenv("LOG_LEVEL", "INFO")
    log_path = os.getenv("LOG_PATH", "logs/gift_exchange.log")
    max_attempts_raw = os.getenv("ASSIGNMENT_MAX_ATTEMPTS", "100")
    strategy = os.getenv("ASSIGNMENT_STRATEGY", "retry").strip().lower()

    if not database_url:
        raise ValueError("DATABASE_URL is required. Set it in the environment or .env file.")

    try:
        max_attempts = int(max_attempts_raw)
    except ValueError:
        raise ValueError("ASSIGNMENT_MAX_ATTEMPTS must be an integer.") from None
    if max_attempts < 1:
        raise ValueError("ASSIGNMENT_MAX_ATTEMPTS must be at least 1.")

    if strategy not in ASSIGNMENT_STRATEGIES:
        raise ValueError(
            "ASSIGNMENT_STRATEGY must be one of: " + ", ".join(ASSIGNMENT_STRATEGIES)
        )

    return Settings(
        database_url=database_url,
        log_level=log_level,
        log_path=log_path,
        assignment_max_attempts=max_attempts,
        assignment_strategy=strategy,
    )
