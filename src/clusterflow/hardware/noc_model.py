"""
Network-on-Chip Model Handle

Parameters of the interconnect feeding a cluster level. The cluster
analysis holds this handle for downstream traffic estimators and never
inspects it.
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class NetworkOnChipModel:
    """
    Simple bandwidth/latency NoC model.

    Attributes:
        bandwidth: Elements delivered per cycle
        num_hops: Hops between the buffer and a cluster
        hop_latency: Cycles per hop
        multicast_supported: Whether one transfer can feed several clusters
    """
    bandwidth: int = 1
    num_hops: int = 1
    hop_latency: int = 1
    multicast_supported: bool = True

    def __post_init__(self):
        if self.bandwidth < 1:
            raise ValueError(f"NoC bandwidth must be >= 1, got {self.bandwidth}")
        if self.num_hops < 0 or self.hop_latency < 0:
            raise ValueError("NoC hops and hop latency must be non-negative")

    def get_out_latency(self, num_elements: int) -> int:
        """Cycles to deliver `num_elements` (pipeline fill + serialization)."""
        if num_elements <= 0:
            return 0
        return self.num_hops * self.hop_latency + math.ceil(num_elements / self.bandwidth)

    def __str__(self) -> str:
        cast = "multicast" if self.multicast_supported else "unicast"
        return f"NoC(bw={self.bandwidth}, hops={self.num_hops}x{self.hop_latency}, {cast})"
