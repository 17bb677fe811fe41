"""
PerfSteps Serve - step definitions and JSON-RPC server for performance scenarios
"""

from .feature_runner import FeatureRunner, parse_feature
from .server import PerfStepsServe
from .step_registry import StepRegistry, StepNotFoundError, given, when, then, parsers
from .test_context import TestContext

__all__ = [
    'FeatureRunner',
    'parse_feature',
    'PerfStepsServe',
    'StepRegistry',
    'StepNotFoundError',
    'TestContext',
    'given',
    'when',
    'then',
    'parsers',
]
