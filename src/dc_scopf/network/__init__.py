"""
Network model: typed bus/branch/generator records and the validated Network snapshot.
"""

from __future__ import annotations

from .elements import Branch, BranchId, Bus, Generator, GeneratorId
from .model import Network, build_network

__all__ = [
    "Branch",
    "BranchId",
    "Bus",
    "Generator",
    "GeneratorId",
    "Network",
    "build_network",
]
