"""
Spatial Iteration and Edge-Cluster Analysis

Closed-form occupancy of a spatially mapped dimension.

With S = dimension size, T = tile size, O = stride and C = number of
sub-clusters, one spatial sweep places C tiles at offsets 0, O, ..., O*(C-1):

    base coverage = O*C            (advance of the next sweep)
    full coverage = O*(C-1) + T    (span touched by one sweep)

Sweeps that use every sub-cluster are "steady"; the final sweep may keep
only some sub-clusters busy. Those are the "edge" clusters.

Example (S=18, T=4, O=4, C=4):
    sweep 0 covers [0, 16)      -> steady, 4 clusters busy
    sweep 1 covers [16, 18)     -> edge, 1 cluster busy
    num_spatial_iterations = ceil(18 / 16) = 2
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class SpatialEdgeProfile:
    """
    Spatial occupancy of one spatially mapped dimension.

    num_steady_spatial_iterations counts full sweeps after the first one;
    num_edge_spatial_iterations is 0 or 1; num_spatial_edge_clusters is the
    number of busy sub-clusters in the edge sweep, in [1, cluster_size].
    """
    dim_size: int
    map_size: int
    map_stride: int
    cluster_size: int

    num_spatial_iterations: int
    num_steady_spatial_iterations: int
    num_edge_spatial_iterations: int
    num_spatial_edge_clusters: int

    @property
    def base_coverage(self) -> int:
        return self.map_stride * self.cluster_size

    @property
    def full_coverage(self) -> int:
        return self.map_stride * (self.cluster_size - 1) + self.map_size

    @property
    def needs_multiple_sweeps(self) -> bool:
        return self.dim_size > self.full_coverage

    @property
    def edge_utilization(self) -> float:
        """Fraction of sub-clusters busy during the edge sweep."""
        return self.num_spatial_edge_clusters / self.cluster_size

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {
            'dim_size': self.dim_size,
            'map_size': self.map_size,
            'map_stride': self.map_stride,
            'cluster_size': self.cluster_size,
            'base_coverage': self.base_coverage,
            'full_coverage': self.full_coverage,
            'num_spatial_iterations': self.num_spatial_iterations,
            'num_steady_spatial_iterations': self.num_steady_spatial_iterations,
            'num_edge_spatial_iterations': self.num_edge_spatial_iterations,
            'num_spatial_edge_clusters': self.num_spatial_edge_clusters,
            'edge_utilization': self.edge_utilization,
        }


def ceil_div(numerator: int, denominator: int) -> int:
    """Integer ceiling division, exact for arbitrarily large sizes."""
    return -(-numerator // denominator)


def num_spatial_iterations(dim_size: int, map_stride: int, cluster_size: int) -> int:
    """ceil(S / (O*C)); includes the edge sweep."""
    return ceil_div(dim_size, map_stride * cluster_size)


def analyze_spatial_edge(
    dim_size: int,
    map_size: int,
    map_stride: int,
    cluster_size: int,
) -> SpatialEdgeProfile:
    """
    Compute steady/edge sweep counts and edge-cluster occupancy.

    Args:
        dim_size: Size S of the spatially mapped dimension
        map_size: Tile size T of the spatial directive
        map_stride: Stride O of the spatial directive
        cluster_size: Number of sub-clusters C

    Returns:
        SpatialEdgeProfile

    Raises:
        ValueError: if any argument is below 1
    """
    for name, value in (
        ('dim_size', dim_size),
        ('map_size', map_size),
        ('map_stride', map_stride),
        ('cluster_size', cluster_size),
    ):
        if value < 1:
            raise ValueError(f"{name} must be >= 1, got {value}")

    base_coverage = map_stride * cluster_size
    full_coverage = map_stride * (cluster_size - 1) + map_size

    if dim_size > full_coverage:
        # Tile positions that fit entirely inside the dimension
        num_positions = (dim_size - map_size) // map_stride + 1
        num_steady = num_positions // cluster_size - 1

        swept = (num_steady + 1) * base_coverage
        num_edge = 1 if swept + full_coverage > dim_size else 0

        remaining = dim_size - swept
        if remaining < map_size:
            num_edge_clusters = 1
        else:
            num_edge_clusters = (remaining - map_size) // map_stride + 1
    else:
        num_steady = 0
        num_edge = 1
        if dim_size > map_size:
            num_edge_clusters = (dim_size - map_size) // map_stride + 1
            edge_coverage = map_stride * (num_edge_clusters - 1) + map_size
            if edge_coverage < dim_size:
                num_edge_clusters += 1
        else:
            num_edge_clusters = 1

    if dim_size <= map_size:
        num_edge_clusters = 1

    return SpatialEdgeProfile(
        dim_size=dim_size,
        map_size=map_size,
        map_stride=map_stride,
        cluster_size=cluster_size,
        num_spatial_iterations=num_spatial_iterations(dim_size, map_stride, cluster_size),
        num_steady_spatial_iterations=num_steady,
        num_edge_spatial_iterations=num_edge,
        num_spatial_edge_clusters=num_edge_clusters,
    )
