import logging

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Stock Ledger"
    DATABASE_URL: str = "sqlite:///./stockledger.db"

    # Storage keys for the two persisted collections
    PRODUCTS_KEY: str = "products"
    HISTORY_KEY: str = "history"

    # Number of most recent history entries kept
    HISTORY_LIMIT: int = 100

    # Reject non-numeric quantities and prices instead of reading them as 0
    STRICT_NUMERIC_INPUT: bool = True

    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env"}


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
