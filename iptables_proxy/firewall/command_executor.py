"""
Command Executor

Applies iptables mutation descriptors:
- DRY_RUN: renders each descriptor as (program, args) and logs it
- LIVE: spawns each command and waits for it before the next one

Execution is best effort. A failing command (nonzero exit or spawn error) is
logged and reported in its outcome, and the remaining commands still run.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ..core.rule_compiler import MutationDescriptor

logger = logging.getLogger('iptables-proxy.executor')


class ExecutionMode(str, Enum):
    DRY_RUN = "dry_run"
    LIVE = "live"


class FailurePolicy(str, Enum):
    CONTINUE = "continue"
    HALT = "halt"


class OutcomeStatus(str, Enum):
    SIMULATED = "simulated"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ProcessResult:
    returncode: int
    stderr: str = ""


class ProcessRunner:
    """
    Runs an external program and reports how it exited
    """

    async def run(self, program: str, args: Sequence[str]) -> ProcessResult:
        raise NotImplementedError


class AsyncProcessRunner(ProcessRunner):
    """ProcessRunner backed by asyncio subprocesses"""

    async def run(self, program: str, args: Sequence[str]) -> ProcessResult:
        process = await asyncio.create_subprocess_exec(
            program, *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await process.communicate()
        return ProcessResult(
            returncode=process.returncode,
            stderr=stderr.decode(errors="replace").strip(),
        )


@dataclass
class CommandOutcome:
    descriptor: MutationDescriptor
    status: OutcomeStatus
    returncode: Optional[int] = None
    error: Optional[str] = None

    @property
    def command(self) -> Tuple[str, str]:
        return self.descriptor.render()

    @property
    def ok(self) -> bool:
        return self.status in (OutcomeStatus.SIMULATED, OutcomeStatus.SUCCEEDED)

    def to_dict(self) -> dict:
        program, args = self.command
        return {
            "program": program,
            "args": args,
            "status": self.status.value,
            "returncode": self.returncode,
            "error": self.error,
        }


class CommandExecutor:
    """
    Executes batches of mutation descriptors in order
    """

    def __init__(
        self,
        mode: ExecutionMode = ExecutionMode.LIVE,
        runner: Optional[ProcessRunner] = None,
        failure_policy: FailurePolicy = FailurePolicy.CONTINUE,
    ):
        """
        Args:
            mode: Default execution mode for run()
            runner: Process runner used in LIVE mode
            failure_policy: CONTINUE keeps going after a failed command,
                            HALT skips the rest of the batch
        """
        self.mode = mode
        self.runner = runner or AsyncProcessRunner()
        self.failure_policy = failure_policy

    @property
    def dry_run(self) -> bool:
        return self.mode == ExecutionMode.DRY_RUN

    @staticmethod
    def simulate(descriptors: Sequence[MutationDescriptor]) -> List[Tuple[str, str]]:
        """Render descriptors without running anything"""
        return [d.render() for d in descriptors]

    async def run(
        self,
        descriptors: Sequence[MutationDescriptor],
        mode: Optional[ExecutionMode] = None,
    ) -> List[CommandOutcome]:
        """
        Run a batch of descriptors

        Returns:
            One outcome per descriptor, in input order
        """
        mode = mode or self.mode
        outcomes = []
        halted = False

        for descriptor in descriptors:
            logger.debug(f"Running command: {descriptor}")

            if mode == ExecutionMode.DRY_RUN:
                outcomes.append(CommandOutcome(descriptor, OutcomeStatus.SIMULATED))
                continue

            if halted:
                outcomes.append(CommandOutcome(descriptor, OutcomeStatus.SKIPPED))
                continue

            outcome = await self._execute(descriptor)
            outcomes.append(outcome)

            if not outcome.ok and self.failure_policy == FailurePolicy.HALT:
                logger.warning("Halting batch after failed command")
                halted = True

        return outcomes

    async def _execute(self, descriptor: MutationDescriptor) -> CommandOutcome:
        try:
            result = await self.runner.run(descriptor.program, descriptor.args)
        except Exception as e:
            logger.error(f"Executing command: {descriptor} - {e}")
            return CommandOutcome(descriptor, OutcomeStatus.FAILED, error=str(e))

        if result.returncode != 0:
            logger.error(
                f"Command failed ({result.returncode}): {descriptor} - {result.stderr}"
            )
            return CommandOutcome(
                descriptor,
                OutcomeStatus.FAILED,
                returncode=result.returncode,
                error=result.stderr or None,
            )

        return CommandOutcome(descriptor, OutcomeStatus.SUCCEEDED, returncode=0)
