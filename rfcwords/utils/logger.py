"""
Logging utilities for the word statistics pipeline.
"""

import logging
import logging.handlers
import json
import platform
import sys
from pathlib import Path
from typing import Dict, Any, Optional
from datetime import datetime, timezone

import psutil


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        # Document context added by PipelineLogAdapter
        for key in ('url', 'event_type', 'word', 'count'):
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry, ensure_ascii=False)


class PipelineLogAdapter(logging.LoggerAdapter):
    """Logger adapter that adds pipeline-specific context."""

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Add extra context to log messages."""
        if 'extra' not in kwargs:
            kwargs['extra'] = {}

        kwargs['extra'].update(self.extra)

        return msg, kwargs

    def log_document_event(self, level: int, url: str, message: str, **kwargs):
        """Log document-specific events."""
        extra = kwargs.get('extra', {})
        extra['url'] = url
        extra['event_type'] = 'document_event'
        kwargs['extra'] = extra
        self.log(level, message, **kwargs)


def setup_logging(config: Dict[str, Any],
                  enable_json: bool = False) -> logging.Logger:
    """
    Setup logging for the pipeline.

    Args:
        config: Logging configuration dictionary
        enable_json: Enable JSON formatted logging

    Returns:
        Configured root logger
    """
    log_file = Path(config.get('file', 'logs/rfcwords.log'))
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.get('level', 'INFO').upper()))

    root_logger.handlers.clear()

    if enable_json:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    root_logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=3,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    root_logger.addHandler(file_handler)

    error_log_file = log_file.parent / 'errors.log'
    error_handler = logging.handlers.RotatingFileHandler(
        error_log_file,
        maxBytes=5 * 1024 * 1024,  # 5MB
        backupCount=3,
        encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)
    root_logger.addHandler(error_handler)

    third_party_loggers = {
        'aiohttp': logging.WARNING,
        'asyncio': logging.WARNING,
        'charset_normalizer': logging.WARNING,
    }

    for logger_name, level in third_party_loggers.items():
        logging.getLogger(logger_name).setLevel(level)

    root_logger.info(
        f"Logging to {log_file} (errors: {error_log_file}), "
        f"level={config.get('level', 'INFO')}, json={enable_json}"
    )

    return root_logger


def get_pipeline_logger(name: str, **extra_context) -> PipelineLogAdapter:
    """Wrap the named logger so every record carries extra_context."""
    return PipelineLogAdapter(logging.getLogger(name), extra_context)


def log_system_info():
    """Log the host resources the worker pool will share."""
    logger = logging.getLogger(__name__)
    memory = psutil.virtual_memory()

    logger.info(
        f"Host: {platform.node()} ({platform.system()} {platform.release()}), "
        f"Python {platform.python_version()}"
    )
    logger.info(
        f"CPUs: {psutil.cpu_count(logical=False)} physical / {psutil.cpu_count()} logical, "
        f"memory available: {memory.available / 1024**3:.1f} of {memory.total / 1024**3:.1f} GB"
    )
