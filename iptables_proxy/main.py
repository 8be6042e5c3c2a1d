#!/usr/bin/env python3
"""
iptables-proxy daemon

1. Reads settings from the environment and command line
2. Optionally enables IP forwarding and installs static routes
3. Serves the control API with uvicorn
"""

import argparse
import logging
import sys
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import FastAPI

from . import __version__
from .api.routes import router
from .config import Settings
from .core.forwarding_service import ForwardingService
from .core.route_registry import RouteRegistry
from .core.rule_compiler import RuleCompiler
from .firewall.command_executor import CommandExecutor, ExecutionMode, ProcessRunner
from .firewall.forwarding import ForwardingManager

logger = logging.getLogger('iptables-proxy')


def configure_logging(level: str = "INFO", log_file: Optional[str] = None):
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )


def create_app(settings: Settings, runner: Optional[ProcessRunner] = None) -> FastAPI:
    """
    Build the control API application

    Args:
        settings: Service settings, PUBLIC_IP must be set
        runner: Process runner for live mode (defaults to asyncio subprocesses)
    """
    if not settings.PUBLIC_IP:
        raise ValueError("PUBLIC_IP is required")

    mode = ExecutionMode.DRY_RUN if settings.DRY_RUN else ExecutionMode.LIVE
    service = ForwardingService(
        public_ip=settings.PUBLIC_IP,
        registry=RouteRegistry(),
        compiler=RuleCompiler(program=settings.IPTABLES_BINARY),
        executor=CommandExecutor(mode=mode, runner=runner),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if service.executor.dry_run:
            logger.info("Running in dry run mode")

        if settings.ENABLE_IP_FORWARD:
            ForwardingManager(dry_run=service.executor.dry_run).enable_ip_forward()

        await service.install_static_routes(settings.STATIC_ROUTES)

        yield

        if settings.CLEANUP_ON_SHUTDOWN:
            await service.teardown()

    app = FastAPI(title="iptables-proxy", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.forwarding_service = service
    app.include_router(router)

    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "mode": mode.value,
            "dry_run": service.executor.dry_run,
            "routes": len(service.registry),
        }

    return app


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="iptables port forwarding proxy")
    parser.add_argument("--public-ip", help="Public IP the forwarded ports are published on")
    parser.add_argument("--listen-addr", help="Control API bind address (default 127.0.0.1)")
    parser.add_argument("--listen-port", type=int, help="Control API bind port (default 8080)")
    parser.add_argument(
        "-d", "--dry-run",
        action="store_true",
        default=None,
        help="Log iptables commands instead of running them",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level",
    )
    parser.add_argument("--log-file", help="Also log to this file")
    parser.add_argument(
        "--enable-ip-forward",
        action="store_true",
        default=None,
        help="Enable IPv4 forwarding at startup",
    )
    parser.add_argument(
        "--cleanup-on-shutdown",
        action="store_true",
        default=None,
        help="Uninstall all routes on shutdown",
    )
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    """Environment settings, overridden by command line flags that were given"""
    overrides = {
        "PUBLIC_IP": args.public_ip,
        "LISTEN_ADDR": args.listen_addr,
        "LISTEN_PORT": args.listen_port,
        "DRY_RUN": args.dry_run,
        "LOG_LEVEL": args.log_level,
        "LOG_FILE": args.log_file,
        "ENABLE_IP_FORWARD": args.enable_ip_forward,
        "CLEANUP_ON_SHUTDOWN": args.cleanup_on_shutdown,
    }
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def main(argv: Optional[List[str]] = None):
    """Entry point"""
    args = parse_args(argv)

    try:
        settings = load_settings(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    if not settings.PUBLIC_IP:
        print("--public-ip (or IPTABLES_PROXY_PUBLIC_IP) is required", file=sys.stderr)
        sys.exit(2)

    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)

    app = create_app(settings)

    logger.info(f"Listening on {settings.LISTEN_ADDR}:{settings.LISTEN_PORT}")
    uvicorn.run(app, host=settings.LISTEN_ADDR, port=settings.LISTEN_PORT, log_config=None)


if __name__ == "__main__":
    main()
