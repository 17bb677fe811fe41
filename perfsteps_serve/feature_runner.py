"""
Local feature runner

Runs the scenarios of a Gherkin feature file against a step registry
without a Harmony host. Each scenario gets a fresh context: initialize,
steps, cleanup. The first failing step aborts its scenario.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from .logging.dual_logger import DualLoggerProvider
from .models import LogEntry
from .step_registry import StepRegistry
from .test_context import TestContext


STEP_KEYWORDS = ('Given', 'When', 'Then', 'And', 'But')
SCENARIO_KEYWORDS = ('Scenario:', 'Example:')
UNSUPPORTED_KEYWORDS = ('Scenario Outline:', 'Scenario Template:', 'Examples:', 'Scenarios:', 'Rule:')


@dataclass
class Step:
    keyword: str
    text: str
    line: int


@dataclass
class Scenario:
    name: str
    line: int
    steps: List[Step] = field(default_factory=list)


@dataclass
class Feature:
    name: str
    background: List[Step] = field(default_factory=list)
    scenarios: List[Scenario] = field(default_factory=list)


@dataclass
class ScenarioResult:
    scenario: str
    passed: bool
    steps_run: int
    failed_step: Optional[Step] = None
    error: Optional[str] = None
    logs: List[LogEntry] = field(default_factory=list)


def parse_feature(text: str) -> Feature:
    """
    Parse the subset of Gherkin the performance steps need

    Outlines, rules, tables and doc strings are rejected with ValueError.
    """
    feature = Feature(name="")
    current: Optional[List[Step]] = None

    for line_num, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith('#') or stripped.startswith('@'):
            continue

        if stripped.startswith(UNSUPPORTED_KEYWORDS) or stripped.startswith(('|', '"""')):
            raise ValueError(f"Unsupported Gherkin at line {line_num}: {stripped}")

        if stripped.startswith('Feature:'):
            feature.name = stripped[len('Feature:'):].strip()
        elif stripped.startswith('Background:'):
            current = feature.background
        elif stripped.startswith(SCENARIO_KEYWORDS):
            scenario = Scenario(name=stripped.split(':', 1)[1].strip(), line=line_num)
            feature.scenarios.append(scenario)
            current = scenario.steps
        elif current is not None:
            keyword, _, rest = stripped.partition(' ')
            if keyword in STEP_KEYWORDS:
                current.append(Step(keyword=keyword, text=rest.strip(), line=line_num))

    return feature


class FeatureRunner:
    """Runs feature files through a step registry"""

    def __init__(self, step_registry: StepRegistry, test_context: TestContext,
                 logger: Optional[logging.Logger] = None,
                 logger_provider: Optional[DualLoggerProvider] = None):
        self._step_registry = step_registry
        self._test_context = test_context
        self._logger = logger or logging.getLogger(__name__)
        self._logger_provider = logger_provider

    async def run_scenario(self, feature: Feature, scenario: Scenario) -> ScenarioResult:
        result = await self._run_steps(feature, scenario)

        # Collected entries belong to this scenario
        if self._logger_provider is not None:
            result.logs = self._logger_provider.get_all_logs()
        return result

    async def _run_steps(self, feature: Feature, scenario: Scenario) -> ScenarioResult:
        self._test_context.initialize(
            role="local",
            platform="python",
            scenario=scenario.name,
            test_run_id=f"{feature.name}:{scenario.line}"
        )

        steps_run = 0
        last_keyword = 'Given'
        try:
            for step in feature.background + scenario.steps:
                # And/But continue the previous keyword
                if step.keyword not in ('And', 'But'):
                    last_keyword = step.keyword

                try:
                    await self._step_registry.execute_step(last_keyword, step.text)
                except Exception as e:
                    self._logger.error(f"  ✗ {step.keyword} {step.text}: {e}")
                    return ScenarioResult(scenario.name, False, steps_run, step, str(e))

                steps_run += 1
                self._logger.info(f"  ✓ {step.keyword} {step.text}")
        finally:
            self._test_context.cleanup()

        return ScenarioResult(scenario.name, True, steps_run)

    async def run(self, path: Union[str, Path]) -> List[ScenarioResult]:
        """Run every scenario in a feature file"""
        feature = parse_feature(Path(path).read_text(encoding='utf-8'))
        self._logger.info(f"Feature: {feature.name}")

        results = []
        for scenario in feature.scenarios:
            self._logger.info(f"Scenario: {scenario.name}")
            results.append(await self.run_scenario(feature, scenario))

        passed = sum(1 for r in results if r.passed)
        self._logger.info(f"{passed}/{len(results)} scenarios passed")
        return results
