"""
Firewall Module

Side-effecting side of the proxy:
- CommandExecutor: runs or simulates iptables mutations
- ForwardingManager: kernel IP forwarding switch
"""

from .command_executor import (
    AsyncProcessRunner,
    CommandExecutor,
    CommandOutcome,
    ExecutionMode,
    FailurePolicy,
    OutcomeStatus,
    ProcessResult,
    ProcessRunner,
)
from .forwarding import ForwardingManager

__all__ = [
    "AsyncProcessRunner",
    "CommandExecutor",
    "CommandOutcome",
    "ExecutionMode",
    "FailurePolicy",
    "OutcomeStatus",
    "ProcessResult",
    "ProcessRunner",
    "ForwardingManager",
]
