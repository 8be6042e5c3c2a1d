# iptables_proxy/config.py
import ipaddress
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StaticRoute(BaseModel):
    """A route created at startup"""
    public_port: int = Field(..., ge=1, le=65535)
    inner_ip: str
    inner_port: int = Field(..., ge=1, le=65535)
    protocol: str = Field("tcp", pattern="^tcp$")

    @field_validator("inner_ip")
    @classmethod
    def validate_inner_ip(cls, v: str) -> str:
        # iptables only handles IPv4
        ipaddress.IPv4Address(v)
        return v


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="IPTABLES_PROXY_")

    # Public IP that every route is published on
    PUBLIC_IP: Optional[str] = None

    # HTTP control API
    LISTEN_ADDR: str = "127.0.0.1"
    LISTEN_PORT: int = Field(8080, ge=1, le=65535)

    # Log iptables commands instead of running them
    DRY_RUN: bool = False
    IPTABLES_BINARY: str = "iptables"

    LOG_LEVEL: str = Field("INFO", pattern="^(DEBUG|INFO|WARNING|ERROR)$")
    LOG_FILE: Optional[str] = None

    ENABLE_IP_FORWARD: bool = False
    CLEANUP_ON_SHUTDOWN: bool = False

    # JSON list in the environment, e.g.
    # IPTABLES_PROXY_STATIC_ROUTES='[{"public_port": 2222, "inner_ip": "10.0.0.5", "inner_port": 22}]'
    STATIC_ROUTES: List[StaticRoute] = []

    @field_validator("PUBLIC_IP")
    @classmethod
    def validate_public_ip(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            ipaddress.IPv4Address(v)
        return v

    @field_validator("LISTEN_ADDR")
    @classmethod
    def validate_listen_addr(cls, v: str) -> str:
        ipaddress.ip_address(v)
        return v
