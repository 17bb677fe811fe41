#!/usr/bin/env python3
"""
Main entry point for PerfSteps Serve

`serve` (default) runs the Harmony-compatible JSON-RPC server on stdin/stdout,
`run FEATURE` executes a feature file locally.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from .feature_runner import FeatureRunner
from .logging.dual_logger import DualLoggerProvider, LOG_FORMAT, LOG_DATEFMT
from .server import PerfStepsServe
from .step_definitions import PerformanceSteps
from .step_registry import StepRegistry
from .test_context import TestContext


STEP_CLASSES = [
    PerformanceSteps,
]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog='perfsteps_serve', description='PerfSteps step server')
    parser.add_argument('--report-dir', default=os.environ.get('PERFSTEPS_REPORT_DIR'),
                        help='Directory for stored measurements (default: $PERFSTEPS_REPORT_DIR, none)')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Log level (default: INFO)')

    subparsers = parser.add_subparsers(dest='command')
    subparsers.add_parser('serve', help='Run the JSON-RPC server on stdin/stdout')
    run_parser = subparsers.add_parser('run', help='Run a feature file locally')
    run_parser.add_argument('feature', help='Path to a .feature file')

    return parser.parse_args(argv)


def build_registry(test_context: TestContext, logger_provider: DualLoggerProvider) -> StepRegistry:
    """Register all step definition classes and resolve the dispatch table"""
    step_registry = StepRegistry(logger_provider.get_logger("StepRegistry"))

    for step_class in STEP_CLASSES:
        instance = step_class(test_context, logger_provider.get_logger(step_class.__name__))
        step_registry.register_instance(instance)

    step_registry.discover_steps()
    return step_registry


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the serve application"""
    args = parse_args(argv)
    level = getattr(logging, args.log_level)

    # stdout is reserved for JSON-RPC
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT, stream=sys.stderr)
    logger = logging.getLogger(__name__)

    logger_provider = DualLoggerProvider(level)
    test_context = TestContext(
        report_dir=args.report_dir,
        logger=logger_provider.get_logger("TestContext")
    )
    step_registry = build_registry(test_context, logger_provider)
    logger.info(f"Discovered {len(step_registry.get_all_steps())} step definitions")

    if args.command == 'run':
        runner = FeatureRunner(step_registry, test_context,
                               logger_provider.get_logger("FeatureRunner"), logger_provider)
        results = await runner.run(args.feature)
        return 0 if all(r.passed for r in results) else 1

    server = PerfStepsServe(
        step_registry=step_registry,
        test_context=test_context,
        logger_provider=logger_provider
    )

    try:
        await server.run()
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1
    return 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
