"""
Rule Compiler

Turns a ForwardingRoute into the ordered list of iptables mutations that
install or uninstall it:
1. FORWARD accept for traffic towards the inner host
2. FORWARD accept for return traffic from the inner host
3. nat/PREROUTING DNAT from the public port to the inner host

Uninstall yields the same three rules, in the same order, with -D
instead of -I. iptables deletes by full rule specification, so each
delete matches on exactly the selector used to insert it.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple

from .route import ForwardingRoute

IPTABLES = "iptables"

FORWARD_COMMENT = '"Accept to forward traffic"'
RETURN_COMMENT = '"Accept to forward return traffic"'
DNAT_COMMENT = '"redirect pkts to homeserver"'


class RuleAction(str, Enum):
    INSERT = "-I"
    DELETE = "-D"


@dataclass(frozen=True)
class MutationDescriptor:
    """
    A single iptables rule change.

    selector holds everything after the chain name (matches and target)
    and is the part shared by the insert and delete form of a rule.
    """
    action: RuleAction
    chain: str
    selector: Tuple[str, ...]
    table: Optional[str] = None
    program: str = IPTABLES

    @property
    def args(self) -> List[str]:
        args = []
        if self.table:
            args.extend(["-t", self.table])
        args.extend([self.action.value, self.chain])
        args.extend(self.selector)
        return args

    def render(self) -> Tuple[str, str]:
        """(program, space joined arguments) as logged in dry run mode"""
        return self.program, " ".join(self.args)

    def with_action(self, action: RuleAction) -> "MutationDescriptor":
        return replace(self, action=action)

    def __str__(self) -> str:
        program, args = self.render()
        return f"{program} {args}"


class RuleCompiler:
    """
    Compiles forwarding routes to iptables mutation descriptors
    """

    def __init__(self, program: str = IPTABLES):
        self.program = program

    def install(self, route: ForwardingRoute) -> List[MutationDescriptor]:
        dest = route.destination_endpoint
        public_port = str(route.public_endpoint.port)

        return [
            MutationDescriptor(
                action=RuleAction.INSERT,
                chain="FORWARD",
                selector=(
                    "-d", dest.ip,
                    "-m", "comment", "--comment", FORWARD_COMMENT,
                    "-m", "tcp", "-p", route.protocol,
                    "--dport", public_port,
                    "-j", "ACCEPT",
                ),
                program=self.program,
            ),
            MutationDescriptor(
                action=RuleAction.INSERT,
                chain="FORWARD",
                selector=(
                    "-m", "comment", "--comment", RETURN_COMMENT,
                    "-s", dest.ip,
                    "-m", "tcp", "-p", route.protocol,
                    "--sport", str(dest.port),
                    "-j", "ACCEPT",
                ),
                program=self.program,
            ),
            MutationDescriptor(
                action=RuleAction.INSERT,
                chain="PREROUTING",
                table="nat",
                selector=(
                    "-m", "tcp", "-p", route.protocol,
                    "--dport", public_port,
                    "-m", "comment", "--comment", DNAT_COMMENT,
                    "-j", "DNAT",
                    "--to-destination", str(dest),
                ),
                program=self.program,
            ),
        ]

    def uninstall(self, route: ForwardingRoute) -> List[MutationDescriptor]:
        return [d.with_action(RuleAction.DELETE) for d in self.install(route)]
