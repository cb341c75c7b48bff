import os
import logging

# --- Logging Setup ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# --- Environment Variables & Basic Config ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./devicehub.db")
if not DATABASE_URL:
    logger.critical("DATABASE_URL environment variable is empty!")
    raise ValueError("DATABASE_URL environment variable not set!")

# async engine 需要 async driver
if "+asyncpg" not in DATABASE_URL and "+aiosqlite" not in DATABASE_URL:
    logger.warning(
        f"DATABASE_URL does not use an async driver (asyncpg/aiosqlite). Received: {DATABASE_URL}"
    )

# Redis 為可選，未設定時故障通知只寫入日誌
REDIS_URL = os.getenv("REDIS_URL") or None
FAULT_NOTIFY_CHANNEL = os.getenv("FAULT_NOTIFY_CHANNEL", "devicehub:fault-alerts")


def get_int_env(var_name, default):
    """從環境變數讀取整數，格式錯誤時回退為預設值"""
    value = os.getenv(var_name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            logger.warning(
                f"Environment variable {var_name} ('{value}') is not a valid integer. Using {default}."
            )
    return default


# 保修預警窗口（天）
WARRANTY_ALERT_DAYS = get_int_env("WARRANTY_ALERT_DAYS", 30)
if WARRANTY_ALERT_DAYS < 0:
    logger.warning(
        f"WARRANTY_ALERT_DAYS must not be negative ({WARRANTY_ALERT_DAYS}). Using 30."
    )
    WARRANTY_ALERT_DAYS = 30

logger.info(
    f"DeviceHub config: WARRANTY_ALERT_DAYS={WARRANTY_ALERT_DAYS}, redis={'on' if REDIS_URL else 'off'}"
)
