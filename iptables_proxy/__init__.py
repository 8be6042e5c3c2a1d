"""
iptables-proxy

Small control service that creates and removes port forwarding (DNAT) rules
on the local iptables firewall on demand:
- POST /create installs a forwarding route for a public port
- POST /remove uninstalls it again
- Dry run mode logs the iptables commands instead of running them
"""

__version__ = "0.1.0"
