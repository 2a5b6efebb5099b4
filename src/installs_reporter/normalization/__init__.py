from .agents import ADAPTERS, AgentAdapter, CimianAdapter, MunkiAdapter
from .core import normalize_device, normalize_fleet
from .inventory import parse_inventory

__all__ = [
    "ADAPTERS",
    "AgentAdapter",
    "CimianAdapter",
    "MunkiAdapter",
    "normalize_device",
    "normalize_fleet",
    "parse_inventory",
]
