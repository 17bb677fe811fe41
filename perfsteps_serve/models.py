"""
Data models for JSON-RPC requests and responses

Field names follow the Harmony contract so any Harmony host can drive the serve.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional


@dataclass
class InitializeRequest:
    """Process initialization request - matches Harmony contract"""
    role: str = ""
    platform: str = ""
    scenario: str = ""
    hostPid: int = 0
    featureId: int = 0
    
    @property
    def testRunId(self) -> str:
        """Computed property matching the Harmony contract"""
        return f"{self.hostPid}_{self.featureId}"


@dataclass
class TableData:
    """Table data for steps with tabular input"""
    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)


@dataclass
class StepRequest:
    """Step execution request - matches Harmony contract"""
    process: str = ""
    stepType: str = ""
    step: str = ""
    parameters: Optional[Dict[str, str]] = None
    context: Optional[Dict[str, str]] = None
    isBroadcast: bool = False
    originalStep: Optional[str] = None
    table: Optional[TableData] = None


@dataclass
class LogEntry:
    """Log entry for step execution"""
    level: str = "INFO"
    message: str = ""


@dataclass
class StepResult:
    """Outcome of executing one step"""
    success: bool = True
    error: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    logs: List[LogEntry] = field(default_factory=list)


@dataclass
class StepInfo:
    """Step definition information for discovery"""
    type: str = ""  # "given", "when", "then"
    pattern: str = ""  # Regex pattern


@dataclass
class DiscoverResponse:
    """Step discovery response"""
    steps: List[StepInfo] = field(default_factory=list)
