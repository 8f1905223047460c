"""Event store configuration settings."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from playlog.config.constants import DEFAULT_AGGREGATE_WINDOW, DEFAULT_STORE_BACKEND
from playlog.constants import DEFAULT_CSV_PATH


class StoreSettings(BaseSettings):
    """Which event store backend to use and how aggregates are windowed."""

    STORE_BACKEND: Literal["database", "csv"] = DEFAULT_STORE_BACKEND
    CSV_PATH: str = DEFAULT_CSV_PATH

    # Number of most recent events every snapshot is computed over; 0 = all.
    AGGREGATE_WINDOW: int = Field(default=DEFAULT_AGGREGATE_WINDOW, ge=0)

    model_config = {"env_prefix": ""}
