"""
Mapping Candidate Sweep

Evaluate many candidate dataflows for one cluster level and tabulate
spatial occupancy over grids of (S, T, O, C).

Invalid candidates are recorded with their ConfigurationError and the
sweep moves on to the next one.
"""

import itertools
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from clusterflow.core.dimensions import DimensionTable
from clusterflow.core.directives import DirectiveTable
from clusterflow.core.tensors import TensorTable
from clusterflow.core.errors import ConfigurationError, ErrorCode, ErrorHandler
from clusterflow.hardware.noc_model import NetworkOnChipModel
from clusterflow.analysis.config import ClusterAnalysisConfig
from clusterflow.analysis.cluster_unit import ClusterUnit, analyze_cluster
from clusterflow.analysis.spatial_edge import analyze_spatial_edge


@dataclass
class CandidateResult:
    """Outcome of analyzing one candidate dataflow."""
    index: int
    dataflow: DirectiveTable
    cluster_unit: Optional[ClusterUnit] = None
    error: Optional[ConfigurationError] = None
    total_iterations: Optional[int] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict:
        row = {
            'index': self.index,
            'dataflow': '; '.join(str(d) for d in self.dataflow),
            'valid': self.is_valid,
            'error': self.error.code.value if self.error is not None else None,
            'total_iterations': self.total_iterations,
        }
        if self.cluster_unit is not None:
            row.update({
                'num_spatial_iterations': self.cluster_unit.num_spatial_iterations,
                'num_edge_clusters': self.cluster_unit.num_spatial_edge_clusters,
                'num_partial_outputs': self.cluster_unit.num_partial_outputs,
            })
        return row


@dataclass
class CandidateSweepResult:
    """
    Results of a candidate sweep.

    Keeps every candidate, valid or not, in input order.
    """
    results: List[CandidateResult] = field(default_factory=list)

    @property
    def num_valid(self) -> int:
        return sum(1 for r in self.results if r.is_valid)

    @property
    def num_invalid(self) -> int:
        return len(self.results) - self.num_valid

    @property
    def error_counts(self) -> Dict[ErrorCode, int]:
        return dict(Counter(r.error.code for r in self.results if not r.is_valid))

    def valid_results(self) -> List[CandidateResult]:
        return [r for r in self.results if r.is_valid]

    def best(self) -> Optional[CandidateResult]:
        """Valid candidate with the fewest total iterations (first on ties)."""
        valid = self.valid_results()
        if not valid:
            return None
        return min(valid, key=lambda r: (r.total_iterations, r.index))

    def iteration_statistics(self) -> Dict:
        """
        Mean/median/min/max total iterations over valid candidates.

        min and max are the exact integer totals; mean and median are floats.
        """
        totals = [r.total_iterations for r in self.valid_results()]
        if not totals:
            return {'count': 0}
        iterations = np.array(totals, dtype=float)
        return {
            'count': len(totals),
            'mean': float(np.mean(iterations)),
            'median': float(np.median(iterations)),
            'min': min(totals),
            'max': max(totals),
        }

    def to_dict(self) -> Dict:
        return {
            'num_candidates': len(self.results),
            'num_valid': self.num_valid,
            'num_invalid': self.num_invalid,
            'error_counts': {code.value: n for code, n in self.error_counts.items()},
            'iterations': self.iteration_statistics(),
        }

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([r.to_dict() for r in self.results])


class ClusterCandidateSweeper:
    """
    Analyze candidate dataflows against one cluster level.

    All candidates share the sweeper's dimension table, tensor table and
    NoC model.
    """

    def __init__(
        self,
        dimensions: DimensionTable,
        cluster_size: int,
        cluster_level: int = 0,
        tensors: Optional[TensorTable] = None,
        noc: Optional[NetworkOnChipModel] = None,
        config: Optional[ClusterAnalysisConfig] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.dimensions = dimensions
        self.cluster_size = cluster_size
        self.cluster_level = cluster_level
        self.tensors = tensors
        self.noc = noc
        self.config = config or ClusterAnalysisConfig()
        # Rejected candidates are routine in a sweep, so they log at DEBUG
        self.error_handler = error_handler or ErrorHandler(log_level=logging.DEBUG)

    def evaluate(self, index: int, dataflow: DirectiveTable) -> CandidateResult:
        """Analyze a single candidate, capturing configuration errors."""
        unit = analyze_cluster(
            self.cluster_level,
            self.cluster_size,
            dataflow,
            self.dimensions,
            self.tensors,
            self.noc,
            error_handler=self.error_handler,
            config=self.config,
        )
        if isinstance(unit, ConfigurationError):
            return CandidateResult(index=index, dataflow=dataflow, error=unit)

        try:
            total_iterations = unit.get_num_total_iterations()
        except ConfigurationError as e:
            return CandidateResult(index=index, dataflow=dataflow, error=e)

        return CandidateResult(
            index=index,
            dataflow=dataflow,
            cluster_unit=unit,
            total_iterations=total_iterations,
        )

    def sweep(
        self,
        candidates: Iterable[DirectiveTable],
        progress_callback: Optional[Callable[[int, DirectiveTable], None]] = None,
    ) -> CandidateSweepResult:
        """
        Analyze every candidate.

        Args:
            candidates: Candidate dataflows for this cluster level
            progress_callback: Optional callback(index, dataflow)

        Returns:
            CandidateSweepResult with one entry per candidate
        """
        result = CandidateSweepResult()
        for index, dataflow in enumerate(candidates):
            if progress_callback:
                progress_callback(index, dataflow)
            result.results.append(self.evaluate(index, dataflow))
        return result


def sweep_spatial_edge_cases(
    dim_sizes: Sequence[int],
    map_sizes: Sequence[int],
    strides: Sequence[int],
    cluster_sizes: Sequence[int],
) -> pd.DataFrame:
    """
    Tabulate spatial occupancy over the cartesian product of parameters.

    Returns:
        DataFrame with one SpatialEdgeProfile.to_dict() row per combination
    """
    rows = [
        analyze_spatial_edge(S, T, O, C).to_dict()
        for S, T, O, C in itertools.product(dim_sizes, map_sizes, strides, cluster_sizes)
    ]
    return pd.DataFrame(rows)
