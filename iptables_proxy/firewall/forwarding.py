"""
IP Forwarding Manager

DNAT'ed traffic is only forwarded when the kernel IP forwarding switch is on.
Checks and optionally enables it at startup.
"""

import logging

logger = logging.getLogger('iptables-proxy.forwarding')


class ForwardingManager:
    """
    Manages the IPv4 forwarding sysctl
    """

    IPV4_FORWARD = "/proc/sys/net/ipv4/ip_forward"

    def __init__(self, path: str = IPV4_FORWARD, dry_run: bool = False):
        """
        Args:
            path: sysctl file to read and write
            dry_run: Only log what would be written
        """
        self.path = path
        self.dry_run = dry_run

    def is_forwarding_enabled(self) -> bool:
        """Check if IPv4 forwarding is enabled"""
        try:
            with open(self.path, 'r') as f:
                return f.read().strip() == "1"
        except OSError as e:
            logger.warning(f"Could not read {self.path}: {e}")
            return False

    def enable_ip_forward(self) -> bool:
        """
        Enable IPv4 forwarding if it is off

        Returns:
            True if forwarding is (or, in dry run, would be) enabled
        """
        if self.is_forwarding_enabled():
            logger.debug("IPv4 forwarding already enabled")
            return True

        if self.dry_run:
            logger.info(f"Dry run: would write 1 to {self.path}")
            return True

        try:
            with open(self.path, 'w') as f:
                f.write("1")
        except PermissionError:
            logger.error(f"Permission denied writing to {self.path}")
            return False
        except OSError as e:
            logger.error(f"Error writing to {self.path}: {e}")
            return False

        logger.info("IPv4 forwarding enabled")
        return True
