"""
Centralized logging configuration for the Knowledge Assistant.

This module provides logging configuration and utilities for the entire application,
ensuring consistent logging behavior across the web app, sync workers and CLI.
"""

import os
import logging
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

NOISY_LOGGERS = (
    'urllib3',
    'requests',
    'httpx',
    'httpcore',
    'googleapiclient.discovery_cache',
    'pymilvus',
    'werkzeug',
)


def get_log_dir() -> str:
    """
    Get the configured log directory from environment variables.

    Returns:
        str: The log directory path (defaults to "logs" if not configured)
    """
    return os.getenv("LOG_DIR", "logs")


def _quiet_noisy_loggers() -> None:
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(log_dir: Optional[str] = None, log_level: int = logging.INFO) -> None:
    """
    Set up centralized logging configuration for the application.

    Args:
        log_dir: Log directory override (defaults to configured LOG_DIR)
        log_level: Root logging level
    """
    if log_dir is None:
        log_dir = get_log_dir()

    # Ensure log directory exists
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_path / 'knowledge_assistant.log')
        ]
    )

    _quiet_noisy_loggers()

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured - log directory: {log_path.absolute()}")


def setup_script_logging(
    script_name: Optional[str] = None,
    log_level: int = logging.INFO,
    log_dir: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging for standalone scripts using the configured LOG_DIR.

    Args:
        script_name: Name of the script, also used for the log file name
        log_level: Logging level (defaults to INFO)
        log_dir: Log directory override (defaults to configured LOG_DIR)

    Returns:
        logging.Logger: Configured logger instance
    """
    script_name = script_name or "script"
    log_path = Path(log_dir or get_log_dir())
    log_path.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_path / f'{script_name}.log')
        ]
    )
    _quiet_noisy_loggers()

    logger = logging.getLogger(script_name)
    logger.info(f"Logging configured for {script_name} - log directory: {log_path.absolute()}")
    return logger
