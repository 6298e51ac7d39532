import sys
import logging
from typing import Any

from loguru import logger

from team_schedule.config.settings import settings

MASK = "********"


def _secret_values() -> list[str]:
    return [
        secret
        for secret in (settings.supabase_key, settings.supabase_service_key)
        if secret
    ]


def sensitive_data_filter(record: dict[str, Any]) -> bool:
    """Masks Supabase keys in the message and in any sensitive-looking extras."""
    sensitive_keys = ["key", "token", "password", "secret", "jwt"]

    extra = record.get("extra")
    if isinstance(extra, dict):
        for extra_key, value in extra.items():
            if any(sk in extra_key.lower() for sk in sensitive_keys):
                if isinstance(value, str) and len(value) > 8:
                    extra[extra_key] = value[:4] + "****" + value[-4:]
                else:
                    extra[extra_key] = MASK

    for secret in _secret_values():
        if secret in record["message"]:
            record["message"] = record["message"].replace(secret, MASK)

    return True  # Keep the record after masking


class InterceptHandler(logging.Handler):
    """Routes standard logging records (httpx, postgrest) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging() -> None:
    """Configures Loguru logger based on application settings."""
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        backtrace=True,
        diagnose=False,
        filter=sensitive_data_filter,
    )

    logger.info(f"Logging initialized with level: {settings.log_level}")

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logger.debug("Standard logging intercepted.")
