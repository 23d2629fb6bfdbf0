"""
Cluster Analysis Module

Closed-form per-level analysis of spatial/temporal dataflow mappings.

Classes:
    ClusterUnit: Analysis of one cluster level of a mapping
    MappedElements: Mapped/unique/reused element counts of one dimension
    SpatialEdgeProfile: Steady vs. edge occupancy of a spatial map
    ClusterAnalysisConfig: Analysis configuration
    ClusterCandidateSweeper: Evaluate many candidate dataflows
    CandidateSweepResult: Results of a candidate sweep
"""

from clusterflow.analysis.config import (
    ClusterAnalysisConfig,
    MAX_ITERATIONS,
)
from clusterflow.analysis.spatial_edge import (
    SpatialEdgeProfile,
    analyze_spatial_edge,
    num_spatial_iterations,
    ceil_div,
)
from clusterflow.analysis.cluster_unit import (
    ClusterUnit,
    MappedElements,
    analyze_cluster,
)
from clusterflow.analysis.sweep import (
    CandidateResult,
    CandidateSweepResult,
    ClusterCandidateSweeper,
    sweep_spatial_edge_cases,
)

__all__ = [
    'ClusterAnalysisConfig',
    'MAX_ITERATIONS',
    'SpatialEdgeProfile',
    'analyze_spatial_edge',
    'num_spatial_iterations',
    'ceil_div',
    'ClusterUnit',
    'MappedElements',
    'analyze_cluster',
    'CandidateResult',
    'CandidateSweepResult',
    'ClusterCandidateSweeper',
    'sweep_spatial_edge_cases',
]
