"""
Host-side collaborators.

Thin wrappers over system tools and files used once a session is up:
- InterfaceConfigurator: ifconfig/route
- ResolverWriter: resolver file
- ReachabilityProber: periodic ping
"""

from .interface import InterfaceConfigurator, run_tool
from .resolver import ResolverWriter, DEFAULT_RESOLV_CONF
from .prober import ReachabilityProber

__all__ = [
    "InterfaceConfigurator",
    "run_tool",
    "ResolverWriter",
    "DEFAULT_RESOLV_CONF",
    "ReachabilityProber",
]
