# tests/conftest.py
"""
Pytest fixtures shared by the iptables-proxy tests
"""

import asyncio
import os
from typing import List, Optional, Sequence, Tuple

import pytest

from iptables_proxy.core.route import ForwardingRoute
from iptables_proxy.core.route_registry import RouteRegistry
from iptables_proxy.core.rule_compiler import RuleCompiler
from iptables_proxy.core.forwarding_service import ForwardingService
from iptables_proxy.firewall.command_executor import (
    CommandExecutor,
    ExecutionMode,
    ProcessResult,
    ProcessRunner,
)

PUBLIC_IP = "203.0.113.1"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep exported IPTABLES_PROXY_* variables out of Settings()"""
    for name in list(os.environ):
        if name.startswith("IPTABLES_PROXY_"):
            monkeypatch.delenv(name, raising=False)


class RecordingRunner(ProcessRunner):
    """
    ProcessRunner test double

    Records every (program, args) it is asked to run. Commands whose joined
    args contain one of fail_on exit with code 1; those containing one of
    raise_on raise FileNotFoundError like a missing binary would.
    """

    def __init__(
        self,
        fail_on: Sequence[str] = (),
        raise_on: Sequence[str] = (),
        yield_control: bool = False,
    ):
        self.calls: List[Tuple[str, List[str]]] = []
        self.fail_on = list(fail_on)
        self.raise_on = list(raise_on)
        self.yield_control = yield_control

    async def run(self, program: str, args: Sequence[str]) -> ProcessResult:
        self.calls.append((program, list(args)))
        joined = " ".join(args)

        if self.yield_control:
            await asyncio.sleep(0)

        if any(marker in joined for marker in self.raise_on):
            raise FileNotFoundError(f"No such file or directory: '{program}'")
        if any(marker in joined for marker in self.fail_on):
            return ProcessResult(returncode=1, stderr="iptables: Bad rule")
        return ProcessResult(returncode=0)

    @property
    def command_lines(self) -> List[str]:
        return [" ".join(args) for _, args in self.calls]


@pytest.fixture
def compiler():
    return RuleCompiler()


@pytest.fixture
def registry():
    return RouteRegistry()


@pytest.fixture
def runner():
    return RecordingRunner()


@pytest.fixture
def route():
    """Route from 203.0.113.1:8080 to 10.0.0.5:80/tcp"""
    return ForwardingRoute.build(PUBLIC_IP, 8080, "10.0.0.5", 80, "tcp")


def make_service(runner: Optional[ProcessRunner] = None, dry_run: bool = False) -> ForwardingService:
    mode = ExecutionMode.DRY_RUN if dry_run else ExecutionMode.LIVE
    return ForwardingService(
        public_ip=PUBLIC_IP,
        registry=RouteRegistry(),
        compiler=RuleCompiler(),
        executor=CommandExecutor(mode=mode, runner=runner or RecordingRunner()),
    )


@pytest.fixture
def service(runner):
    """Live-mode service wired to a RecordingRunner"""
    return make_service(runner)


@pytest.fixture
def dry_service(runner):
    """Dry-run service; runner must never be called"""
    return make_service(runner, dry_run=True)
