"""
Forwarding route lifecycle

- ForwardingRoute: immutable route value
- RuleCompiler: route -> ordered iptables mutations
- RouteRegistry: active routes keyed by public endpoint
- ForwardingService: create/remove orchestration
"""

from .route import Endpoint, ForwardingRoute
from .rule_compiler import MutationDescriptor, RuleAction, RuleCompiler
from .route_registry import RouteRegistry
from .forwarding_service import (
    CreateResult,
    ForwardingService,
    RemoveResult,
    RouteNotFoundError,
)

__all__ = [
    "Endpoint",
    "ForwardingRoute",
    "MutationDescriptor",
    "RuleAction",
    "RuleCompiler",
    "RouteRegistry",
    "ForwardingService",
    "CreateResult",
    "RemoveResult",
    "RouteNotFoundError",
]
