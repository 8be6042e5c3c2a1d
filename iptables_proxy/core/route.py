"""
Forwarding route model
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Endpoint:
    """An (IP address, port) pair"""
    ip: str
    port: int

    def __str__(self) -> str:
        return f"{self.ip}:{self.port}"


@dataclass(frozen=True)
class ForwardingRoute:
    """
    One active forwarding intent: traffic to public_endpoint is forwarded
    to destination_endpoint.

    Routes are identified by their public endpoint only. Destination and
    protocol may change between two routes at the same public endpoint.
    """
    public_endpoint: Endpoint
    destination_endpoint: Endpoint
    protocol: str = "tcp"

    @classmethod
    def build(
        cls,
        public_ip: str,
        public_port: int,
        dest_ip: str,
        dest_port: int,
        protocol: str = "tcp",
    ) -> "ForwardingRoute":
        return cls(
            public_endpoint=Endpoint(public_ip, public_port),
            destination_endpoint=Endpoint(dest_ip, dest_port),
            protocol=protocol,
        )

    def to_dict(self) -> dict:
        return {
            "public_ip": self.public_endpoint.ip,
            "public_port": self.public_endpoint.port,
            "inner_ip": self.destination_endpoint.ip,
            "inner_port": self.destination_endpoint.port,
            "protocol": self.protocol,
        }

    def __str__(self) -> str:
        return f"{self.public_endpoint} -> {self.destination_endpoint}/{self.protocol}"
