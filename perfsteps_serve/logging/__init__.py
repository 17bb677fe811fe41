from .dual_logger import DualLogger, DualLoggerProvider, LogCollector

__all__ = ['DualLogger', 'DualLoggerProvider', 'LogCollector']
