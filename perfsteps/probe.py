"""
Performance probes

A probe captures one timing window for a browser session and persists it
on request. PerformanceMeasure reads the browser's high resolution clock
through the session driver, MeasureStore keeps the stored records.
"""

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional, Protocol, Union

from .exceptions import DriverException, MeasureNotStoppedError


logger = logging.getLogger(__name__)

# Milliseconds since the epoch as seen by the page
CLOCK_SCRIPT = "return performance.timeOrigin + performance.now();"

REPORT_FILENAME = "performance.jsonl"


class BrowserDriver(Protocol):
    """The part of a browser session driver a probe relies on"""
    
    def execute_script(self, script: str) -> Any:
        ...


class PerformanceProbe(Protocol):
    """Contract the timer registry requires from a probe"""
    
    duration: Optional[float]
    
    def start(self) -> None:
        ...
        
    def end(self) -> None:
        ...
        
    def store(self) -> None:
        ...


class LocalClockDriver:
    """Answers the clock script locally when no browser session is attached"""
    
    def __init__(self) -> None:
        # Anchor perf_counter to the epoch so readings look like timeOrigin + now()
        self._origin = time.time() * 1000 - time.perf_counter() * 1000
        
    def execute_script(self, script: str) -> float:
        if script != CLOCK_SCRIPT:
            raise DriverException(f"LocalClockDriver cannot run script: {script}")
        return self._origin + time.perf_counter() * 1000


class MeasureStore:
    """
    Persists stored measurements
    
    Records are always kept in memory. With a report directory they are
    also appended as JSON lines to performance.jsonl in that directory.
    """
    
    def __init__(self, report_dir: Optional[Union[str, Path]] = None) -> None:
        self._report_dir = Path(report_dir) if report_dir else None
        self._records: List[Dict[str, Any]] = []
        self._lock = Lock()
        
    @property
    def report_dir(self) -> Optional[Path]:
        return self._report_dir
        
    @property
    def report_path(self) -> Optional[Path]:
        if self._report_dir is None:
            return None
        return self._report_dir / REPORT_FILENAME
        
    @property
    def records(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._records)
            
    def add(self, record: Dict[str, Any]) -> None:
        """Keep a record and append it to the report file if configured"""
        with self._lock:
            self._records.append(record)
            
            path = self.report_path
            if path is None:
                return
                
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'a', encoding='utf-8') as f:
                f.write(json.dumps(record) + "\n")
                
        logger.debug(f"Stored measure '{record['name']}' to {path}")


class PerformanceMeasure:
    """Probe timing one window through a browser session driver"""
    
    def __init__(
        self,
        name: str,
        driver: BrowserDriver,
        store: Optional[MeasureStore] = None,
        scenario: str = ""
    ):
        """
        Create a performance measure
        
        Args:
            name: Measure name from the step
            driver: Session driver used to read the browser clock
            store: Where store() puts the record, in-memory only if omitted
            scenario: Scenario name recorded alongside the timing
        """
        self.name = name
        self.scenario = scenario
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.duration: Optional[float] = None
        self._driver = driver
        self._store = store if store is not None else MeasureStore()
        
    def _now(self) -> float:
        return float(self._driver.execute_script(CLOCK_SCRIPT))
        
    def start(self) -> None:
        self.start_time = self._now()
        self.end_time = None
        self.duration = None
        
    def end(self) -> None:
        self.end_time = self._now()
        self.duration = self.end_time - self.start_time
        
    def to_record(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'scenario': self.scenario,
            'start': self.start_time,
            'end': self.end_time,
            'duration': self.duration,
            'stored_at': datetime.now(timezone.utc).isoformat()
        }
        
    def store(self) -> None:
        """Hand the finished measurement to the store"""
        if self.duration is None:
            raise MeasureNotStoppedError(self.name)
        self._store.add(self.to_record())
