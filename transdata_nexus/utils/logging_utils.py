"""
Logging setup for the TransDataNexus service

Two outputs per process:
- Console: "[time] [ACTION] logger - LEVEL - message" for operators
- File (optional): one JSON object per line for report saves, expiries,
  data loads and failures, tagged with the process run id

Structured fields travel on the LogRecord via `extra`, see log_event().
"""

import json
import logging
import traceback
import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, Optional


class LogAction(Enum):
    """Event categories written to the JSON-lines log"""
    STARTUP = "STARTUP"
    QUERY = "QUERY"
    ANALYSIS = "ANALYSIS"
    CACHE = "CACHE"
    REPORT_SAVE = "REPORT_SAVE"
    REPORT_EXPIRED = "REPORT_EXPIRED"
    DATA_LOAD = "DATA_LOAD"
    ERROR = "ERROR"
    SHUTDOWN = "SHUTDOWN"


def _action_name(action) -> str:
    return action.value if isinstance(action, LogAction) else str(action)


class JsonLineFormatter(logging.Formatter):
    """
    Serializes each record as a single JSON object

    Keys: timestamp (UTC, millisecond precision), level, service, logger,
    action, message, details, duration_seconds, run_id. Exceptions are added
    to details as `stack_trace`.
    """

    def __init__(self, service_name: str, run_id: str):
        super().__init__()
        self.service_name = service_name
        self.run_id = run_id

    @staticmethod
    def _timestamp(record: logging.LogRecord) -> str:
        moment = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return moment.strftime('%Y-%m-%dT%H:%M:%S.') + f"{moment.microsecond // 1000:03d}Z"

    def format(self, record):
        details = dict(getattr(record, 'details', None) or {})
        if record.exc_info and record.exc_info[0] is not None:
            details['stack_trace'] = ''.join(traceback.format_exception(*record.exc_info))

        return json.dumps({
            'timestamp': self._timestamp(record),
            'level': record.levelname,
            'service': self.service_name,
            'logger': record.name,
            'action': _action_name(getattr(record, 'action', 'INFO')),
            'message': record.getMessage(),
            'details': details,
            'duration_seconds': getattr(record, 'duration_seconds', None),
            'run_id': self.run_id,
        }, default=str)


class ConsoleFormatter(logging.Formatter):
    """Single-line console output, prefixed with the action when one is set"""

    def format(self, record):
        stamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')
        action = getattr(record, 'action', None)
        prefix = f"[{stamp}] [{_action_name(action)}]" if action else f"[{stamp}]"
        line = f"{prefix} {record.name} - {record.levelname} - {record.getMessage()}"
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


def generate_run_id() -> str:
    """Short identifier shared by every log line of one process"""
    return uuid.uuid4().hex[:8]


def setup_logging(name: str, log_dir: Optional[Path] = None, run_id: Optional[str] = None,
                  level=logging.INFO) -> logging.Logger:
    """
    Configure a logger tree for the service

    Module loggers created with logging.getLogger(__name__) below `name`
    inherit these handlers.

    Args:
        name: Root logger name, normally the package name
        log_dir: Directory for "{name}_{date}_{time}.log"; console only when None
        run_id: Identifier written to every JSON line (generated when omitted)
        level: Logging level

    Returns:
        The configured logger; `log_file_path` is set when a file is written
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = False

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(ConsoleFormatter())
    logger.addHandler(console)

    if log_dir is None:
        return logger

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{name}_{datetime.now():%Y-%m-%d_%H-%M-%S}.log"

    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(level)
    file_handler.setFormatter(JsonLineFormatter(name, run_id or generate_run_id()))
    logger.addHandler(file_handler)
    logger.log_file_path = str(log_file)

    return logger


def log_event(logger: logging.Logger, level: int, action, message: str,
              details: Optional[Dict] = None, duration_seconds: Optional[float] = None):
    """
    Log a message carrying structured fields for the JSON-lines output

    Args:
        logger: Module logger
        level: logging.INFO, logging.ERROR, ...
        action: LogAction member or plain string
        message: Text shown on the console and stored as `message`
        details: Extra key/values stored under `details`
        duration_seconds: Elapsed time of the operation, if measured
    """
    logger.log(level, message, extra={
        'action': _action_name(action),
        'details': details or {},
        'duration_seconds': duration_seconds,
    })
