import logging
import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class Settings(BaseModel):
    EMS_API_KEY: str
    EMS_USER_ID: str
    EMS_USER_TOKEN: str
    EMS_ACCOUNT_NUMBER: str
    EMS_ENV: Literal["qa", "prod"]
    EMS_CRYPTO_PAIRS: list[str]
    LOG_LEVEL: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        raw_pairs = os.getenv("EMS_CRYPTO_PAIRS", "BTC/USD")
        pairs = [p.strip().upper() for p in raw_pairs.split(",") if p.strip()]
        if not pairs:
            pairs = ["BTC/USD"]

        return cls.model_validate(
            {
                "EMS_API_KEY": os.getenv("EMS_API_KEY"),
                "EMS_USER_ID": os.getenv("EMS_USER_ID"),
                "EMS_USER_TOKEN": os.getenv("EMS_USER_TOKEN"),
                "EMS_ACCOUNT_NUMBER": os.getenv("EMS_ACCOUNT_NUMBER"),
                "EMS_ENV": os.getenv("EMS_ENV"),
                "EMS_CRYPTO_PAIRS": pairs,
                "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO").upper(),
            }
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


def configure_logging(level: str | None = None) -> None:
    # settings may be unavailable here, so read the env directly
    resolved = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(level=resolved, format=_LOG_FORMAT)
    logging.getLogger("crypto_gateway").setLevel(resolved)
