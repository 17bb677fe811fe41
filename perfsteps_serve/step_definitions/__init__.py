"""
Step definitions for the PerfSteps serve
"""

from .base import BaseSteps
from .performance import PerformanceSteps

__all__ = [
    'BaseSteps',
    'PerformanceSteps',
]
