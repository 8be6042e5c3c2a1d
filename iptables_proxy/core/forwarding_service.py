"""
Forwarding Service

Create/remove orchestration behind the control API:
- create: register route, uninstall the route it replaced, install it
- remove: unregister route, uninstall it

Firewall command failures never fail the operation. They are logged by the
executor and returned as per-command outcomes.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, TYPE_CHECKING

from .route import Endpoint, ForwardingRoute
from .route_registry import RouteRegistry
from .rule_compiler import RuleCompiler

if TYPE_CHECKING:
    from ..config import StaticRoute
    from ..firewall.command_executor import CommandExecutor, CommandOutcome

logger = logging.getLogger('iptables-proxy.service')


class RouteNotFoundError(LookupError):
    """No active route at the requested public endpoint"""

    def __init__(self, public_endpoint: Endpoint):
        self.public_endpoint = public_endpoint
        super().__init__(f"No route registered for {public_endpoint}")


@dataclass
class CreateResult:
    route: ForwardingRoute
    replaced: Optional[ForwardingRoute] = None
    outcomes: List["CommandOutcome"] = field(default_factory=list)


@dataclass
class RemoveResult:
    route: ForwardingRoute
    outcomes: List["CommandOutcome"] = field(default_factory=list)


class ForwardingService:
    """
    Ties registry, compiler and executor together for one public IP
    """

    def __init__(
        self,
        public_ip: str,
        registry: RouteRegistry,
        compiler: RuleCompiler,
        executor: "CommandExecutor",
    ):
        self.public_ip = public_ip
        self.registry = registry
        self.compiler = compiler
        self.executor = executor

    async def create(
        self,
        public_port: int,
        inner_ip: str,
        inner_port: int,
        protocol: str = "tcp",
    ) -> CreateResult:
        """
        Create (or replace) the route for public_port

        Returns:
            CreateResult with the replaced route, if any, and the outcomes
            of the uninstall and install batches in execution order
        """
        route = ForwardingRoute.build(
            self.public_ip, public_port, inner_ip, inner_port, protocol
        )
        logger.debug(f"Creating route: {route}")

        result = CreateResult(route=route)
        result.replaced = self.registry.add(route)

        if result.replaced is not None:
            result.outcomes.extend(
                await self.executor.run(self.compiler.uninstall(result.replaced))
            )

        result.outcomes.extend(await self.executor.run(self.compiler.install(route)))

        logger.info(f"Created route {route}")
        return result

    async def remove(self, public_port: int) -> RemoveResult:
        """
        Remove the route for public_port

        Raises:
            RouteNotFoundError: no route is registered for public_port
        """
        endpoint = Endpoint(self.public_ip, public_port)
        route = self.registry.remove(endpoint)

        if route is None:
            logger.error(f"Tried to remove non existing route: {endpoint}")
            raise RouteNotFoundError(endpoint)

        outcomes = await self.executor.run(self.compiler.uninstall(route))

        logger.info(f"Removed route {route}")
        return RemoveResult(route=route, outcomes=outcomes)

    def routes(self) -> List[ForwardingRoute]:
        return self.registry.routes()

    async def install_static_routes(self, routes: Iterable["StaticRoute"]) -> List[CreateResult]:
        """Create routes declared in configuration"""
        results = []
        for static in routes:
            results.append(await self.create(
                public_port=static.public_port,
                inner_ip=static.inner_ip,
                inner_port=static.inner_port,
                protocol=static.protocol,
            ))

        if results:
            logger.info(f"Installed {len(results)} static routes")
        return results

    async def teardown(self) -> List[RemoveResult]:
        """Unregister and uninstall every active route"""
        results = []
        for route in self.registry.clear():
            outcomes = await self.executor.run(self.compiler.uninstall(route))
            results.append(RemoveResult(route=route, outcomes=outcomes))

        logger.info(f"Uninstalled {len(results)} routes")
        return results
