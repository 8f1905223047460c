"""Default configuration values."""

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./data/playlog.db"
DEFAULT_STORE_BACKEND = "database"
DEFAULT_AGGREGATE_WINDOW = 0  # 0 = entire log
