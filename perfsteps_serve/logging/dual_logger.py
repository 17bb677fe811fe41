"""
Dual logging: every record goes to stderr and into an in-memory collector

The serve drains the collector into each executeStep response so the host
sees what happened during the step.
"""

import logging
import sys
from threading import Lock
from typing import Dict, List

from ..models import LogEntry


LOG_FORMAT = '[%(asctime)s.%(msecs)03d] %(name)s: %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'


class LogCollector:
    """Collects log entries in memory for JSON-RPC responses"""
    
    def __init__(self) -> None:
        self._logs: List[LogEntry] = []
        self._lock = Lock()
        
    def add(self, level: str, message: str) -> None:
        with self._lock:
            self._logs.append(LogEntry(level=level, message=message))
            
    def get_and_clear(self) -> List[LogEntry]:
        """Get all logs and clear the collection"""
        with self._lock:
            logs = self._logs
            self._logs = []
            return logs


class DualLogger(logging.Logger):
    """Logger that hands each record to its handlers and to a collector"""
    
    def __init__(self, name: str, collector: LogCollector) -> None:
        super().__init__(name)
        self._collector = collector
        
    def handle(self, record: logging.LogRecord) -> None:
        super().handle(record)
        
        message = record.getMessage()
        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            message = f"{message}\n{type(exc).__name__}: {exc}"
        self._collector.add(record.levelname, message)


class DualLoggerProvider:
    """Provides dual loggers sharing one collector and one stderr handler"""
    
    def __init__(self, level: int = logging.DEBUG) -> None:
        self._collector = LogCollector()
        self._loggers: Dict[str, logging.Logger] = {}
        self._level = level
        
        self._handler = logging.StreamHandler(sys.stderr)
        self._handler.setLevel(level)
        self._handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        
    def get_logger(self, name: str) -> logging.Logger:
        """Get or create the dual logger for a component"""
        logger = self._loggers.get(name)
        if logger is None:
            logger = DualLogger(f"perfsteps.serve.{name}", self._collector)
            logger.setLevel(self._level)
            logger.addHandler(self._handler)
            logger.propagate = False
            self._loggers[name] = logger
        return logger
        
    def get_all_logs(self) -> List[LogEntry]:
        """Get all collected logs and clear"""
        return self._collector.get_and_clear()
