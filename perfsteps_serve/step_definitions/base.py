"""
Base class for step definitions
"""

import logging

from ..test_context import TestContext


class BaseSteps:
    """Gives step definition classes the scenario context and a logger"""
    
    def __init__(self, test_context: TestContext, logger: logging.Logger):
        self.test_context = test_context
        self.logger = logger
