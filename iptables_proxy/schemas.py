# iptables_proxy/schemas.py
import ipaddress
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


# --- Requests ---
class CreateRequest(BaseModel):
    public_port: int = Field(..., ge=1, le=65535)
    inner_port: int = Field(..., ge=1, le=65535)
    inner_ip: str
    protocol: str = Field("tcp", pattern="^tcp$")

    @field_validator("inner_ip")
    @classmethod
    def validate_inner_ip(cls, v: str) -> str:
        # iptables only handles IPv4
        ipaddress.IPv4Address(v)
        return v


class RemoveRequest(BaseModel):
    public_port: int = Field(..., ge=1, le=65535)


# --- Responses ---
class RouteResponse(BaseModel):
    public_ip: str
    public_port: int
    inner_ip: str
    inner_port: int
    protocol: str


class CommandResponse(BaseModel):
    program: str
    args: str
    status: str
    returncode: Optional[int] = None
    error: Optional[str] = None


class CreateResponse(BaseModel):
    status: str = "created"
    route: RouteResponse
    replaced: Optional[RouteResponse] = None
    commands: List[CommandResponse]


class RemoveResponse(BaseModel):
    status: str = "removed"
    route: RouteResponse
    commands: List[CommandResponse]


class RouteListResponse(BaseModel):
    routes: List[RouteResponse]
