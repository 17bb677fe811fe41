"""
Named timer registry

Maps measure names to probes for the lifetime of one scenario.
"""

import logging
from typing import Callable, Dict, List, Optional

from .exceptions import ExpectationException, MeasureNotFoundError, MeasureNotStoppedError
from .probe import PerformanceProbe
from .types import Comparison


ProbeFactory = Callable[[str], PerformanceProbe]


class MeasureRegistry:
    """Named timers backed by performance probes"""
    
    def __init__(self, probe_factory: ProbeFactory, logger: Optional[logging.Logger] = None):
        """
        Create a registry
        
        Args:
            probe_factory: Builds a probe bound to the current browser session
            logger: Logger for lifecycle messages
        """
        self._probe_factory = probe_factory
        self._measures: Dict[str, PerformanceProbe] = {}
        self._stopped: Dict[str, bool] = {}
        self._logger = logger or logging.getLogger(__name__)
        
    def __contains__(self, name: str) -> bool:
        return name in self._measures
        
    def __len__(self) -> int:
        return len(self._measures)
        
    def names(self) -> List[str]:
        return list(self._measures)
        
    def get(self, name: str) -> PerformanceProbe:
        """Get a measure by name, raising MeasureNotFoundError if unknown"""
        if name not in self._measures:
            raise MeasureNotFoundError(name)
        return self._measures[name]
        
    def start(self, name: str) -> None:
        """Create a probe for name and start it, replacing any previous one"""
        probe = self._probe_factory(name)
        probe.start()
        
        if name in self._measures:
            self._logger.info(f"Replacing performance measure '{name}'")
        self._measures[name] = probe
        self._stopped[name] = False
        
        self._logger.info(f"Started measuring '{name}'")
        
    def stop(self, name: str) -> None:
        """Finalize the probe for name"""
        probe = self.get(name)
        
        # Stopping again re-finalizes against the current time
        if self._stopped[name]:
            self._logger.warning(f"Performance measure '{name}' was already stopped")
            
        probe.end()
        self._stopped[name] = True
        
        self._logger.info(f"Stopped measuring '{name}' after {probe.duration}ms")
        
    def assert_duration(self, name: str, comparison: Comparison, expected: float) -> float:
        """
        Check a stopped measure against an expected duration
        
        The probe is stored only when the comparison holds.
        
        Args:
            name: Measure name
            comparison: Operator applied as actual <op> expected
            expected: Expected duration in milliseconds
            
        Returns:
            The measured duration in milliseconds
        """
        probe = self.get(name)
        if not self._stopped[name] or probe.duration is None:
            raise MeasureNotStoppedError(name)
            
        actual = probe.duration
        if not comparison.evaluate(actual, expected):
            raise ExpectationException(name, actual)
            
        probe.store()
        
        self._logger.info(
            f"'{name}' took {actual}ms, {comparison.value} {expected}ms as expected"
        )
        return actual
        
    def clear(self) -> None:
        """Discard all measures"""
        self._measures.clear()
        self._stopped.clear()
