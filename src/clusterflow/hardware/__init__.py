"""
Hardware Model Handles

Interconnect parameters passed through cluster analysis to the traffic and
latency estimators that consume them.
"""

from .noc_model import NetworkOnChipModel

__all__ = [
    'NetworkOnChipModel',
]
