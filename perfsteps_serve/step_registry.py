"""
Step registry

Step definition methods are tagged with the given/when/then decorators.
discover_steps() resolves every tagged method of the registered instances
into a dispatch table once, at startup; execute_step() only walks that table.
"""

import inspect
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .models import StepInfo, StepResult, TableData


STEP_ATTR = '_step_patterns'
CONJUNCTIONS = ('and', 'but')


class StepNotFoundError(Exception):
    """Raised when no step definition matches the step text"""

    def __init__(self, step_type: str, step_text: str):
        super().__init__(f"No step definition found for: {step_type} {step_text}")
        self.step_type = step_type
        self.step_text = step_text


@dataclass
class StepParser:
    """Regex pattern with optional converters for its named groups"""
    pattern: str
    converters: Dict[str, Callable[[str], Any]] = field(default_factory=dict)


class parsers:
    """Pattern builders accepted by the step decorators"""

    @staticmethod
    def re(pattern: str, converters: Optional[Dict[str, Callable[[str], Any]]] = None) -> StepParser:
        return StepParser(pattern, dict(converters or {}))


def _step_decorator(step_type: str) -> Callable[[Union[str, StepParser]], Callable]:
    def decorator(pattern: Union[str, StepParser]) -> Callable:
        parser = pattern if isinstance(pattern, StepParser) else StepParser(pattern)

        def wrap(func: Callable) -> Callable:
            patterns = func.__dict__.setdefault(STEP_ATTR, [])
            patterns.append((step_type, parser))
            return func

        return wrap
    return decorator


given = _step_decorator('given')
when = _step_decorator('when')
then = _step_decorator('then')


@dataclass
class StepDefinition:
    """One row of the dispatch table"""
    step_type: str
    parser: StepParser
    regex: 're.Pattern[str]'
    handler: Callable[..., Any]
    accepts_table: bool = False

    def bind_arguments(self, match: 're.Match[str]') -> Dict[str, Any]:
        """Build keyword arguments from named groups, converted where configured"""
        kwargs = {}
        for name, value in match.groupdict().items():
            converter = self.parser.converters.get(name)
            kwargs[name] = converter(value) if converter and value is not None else value
        return kwargs


class StepRegistry:
    """Dispatch table of step definitions"""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(__name__)
        self._instances: List[Any] = []
        self._steps: List[StepDefinition] = []

    def register_instance(self, instance: Any) -> None:
        """Register a step definition class instance"""
        self._instances.append(instance)

    def discover_steps(self) -> None:
        """Build the dispatch table from the registered instances"""
        self._steps = []

        for instance in self._instances:
            for attr_name, member in inspect.getmembers(type(instance), callable):
                for step_type, parser in getattr(member, STEP_ATTR, []):
                    handler = getattr(instance, attr_name)
                    self._steps.append(StepDefinition(
                        step_type=step_type,
                        parser=parser,
                        regex=re.compile(parser.pattern),
                        handler=handler,
                        accepts_table='table' in inspect.signature(handler).parameters
                    ))

        self._logger.debug(f"Resolved {len(self._steps)} step definitions")

    def get_all_steps(self) -> List[StepInfo]:
        """Get all step definitions for discovery"""
        return [StepInfo(type=step.step_type, pattern=step.parser.pattern) for step in self._steps]

    def find_step(self, step_type: str, step_text: str) -> Tuple[StepDefinition, 're.Match[str]']:
        """
        Find the definition whose pattern matches the whole text

        The keyword does not restrict matching: definitions of the same type
        are preferred, any other matching definition is used otherwise.
        """
        normalized = step_type.strip().lower()
        text = step_text.strip()

        fallback = None
        for step in self._steps:
            match = step.regex.fullmatch(text)
            if not match:
                continue
            if normalized in CONJUNCTIONS or step.step_type == normalized:
                return step, match
            if fallback is None:
                fallback = (step, match)

        if fallback is None:
            raise StepNotFoundError(step_type, step_text)
        return fallback

    async def execute_step(
        self,
        step_type: str,
        step_text: str,
        parameters: Optional[Dict[str, str]] = None,
        table: Optional[TableData] = None
    ) -> StepResult:
        """
        Execute a step

        Args:
            step_type: Given, When, Then, And or But (case-insensitive)
            step_text: Step text without the keyword
            parameters: Parameters extracted by the host, unused when the pattern matches
            table: Table argument, passed to handlers that accept one

        Returns:
            StepResult with any data the handler returned
        """
        step, match = self.find_step(step_type, step_text)

        kwargs = step.bind_arguments(match)
        args = [] if kwargs else list(match.groups())
        if step.accepts_table:
            kwargs['table'] = table

        self._logger.debug(f"Matched '{step_text}' to {step.handler.__name__}")

        result = step.handler(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result

        return StepResult(
            success=True,
            data=result if isinstance(result, dict) else {}
        )
