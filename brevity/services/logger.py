"""Centralized logging service using loguru."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from brevity.config import settings

NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "hpack",
    "openai",
    "asyncio",
    "trafilatura",
)


def configure_logging(level: Optional[str] = None, log_dir: Optional[str] = None) -> None:
    """Install the console sink and, when a log directory is set, a rotating file sink."""
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=(level or settings.app_log_level).upper(),
        colorize=True,
    )

    target_dir = log_dir if log_dir is not None else settings.log_dir
    if target_dir:
        path = Path(target_dir)
        path.mkdir(parents=True, exist_ok=True)
        logger.add(
            path / "brevity_{time:YYYY-MM-DD}.log",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level="DEBUG",
            rotation="00:00",
            retention="7 days",
            compression="zip",
        )

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(settings.noisy_log_level.upper())


def log_llm_call(
    role: str,
    caller: str,
    duration_ms: int = 0,
    cost: float = 0.0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    """Log one generate call."""
    call_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "role": role,
        "caller": caller,
        "duration_ms": duration_ms,
        "cost": cost,
        "status": status,
        "error": error,
    }
    if error:
        logger.error(f"LLM_CALL_FAILED: {call_data}")
    else:
        logger.info(f"LLM_CALL: {call_data}")


def log_research_step(
    run_id: str,
    step_type: str,
    status: str,
    data: Optional[dict[str, Any]] = None,
) -> None:
    """Log a research step."""
    step_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "run_id": run_id,
        "step_type": step_type,
        "status": status,
        "data": data,
    }
    logger.info(f"RESEARCH_STEP: {step_data}")


def log_event(
    event_type: str,
    message: str,
    **kwargs: Any,
) -> None:
    """Log a generic event."""
    event_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": event_type,
        "message": message,
        **kwargs,
    }
    logger.info(f"EVENT: {event_data}")
