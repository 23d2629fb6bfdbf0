"""
Cluster Unit Analysis

Per-level analysis of a dataflow mapping. One ClusterUnit is built for each
hierarchical cluster level of a mapping; all of them share the same
dimension, tensor and NoC tables.

Construction runs the whole analysis eagerly, in a fixed order:

1. Spatial map discovery: upper (first) and lower (second) spatial
   directive. Zero spatial maps or a third one is a configuration error.
2. Inner temporal map discovery: inner-most temporal directive at or below
   the upper spatial map that still iterates (tile smaller than dimension).
3. Spatial iterations and edge clusters of the upper spatial map.
4. Mapped/unique/reused element counts per dimension.
5. Number of partial outputs.

Everything is read-only afterwards. An invalid mapping raises
ConfigurationError from the constructor; analyze_cluster() returns it
instead so a design-space sweep can skip the candidate.

Usage:
    from clusterflow.analysis import ClusterUnit
    from clusterflow.core import Directive, DirectiveTable, DimensionTable

    dims = DimensionTable.for_conv2d(K=16, C=8, R=3, S=3, Y=16, X=16)
    dataflow = DirectiveTable([
        Directive.spatial(1, 1, 'K'),
        Directive.temporal(3, 1, 'Y'),
        Directive.temporal(3, 3, 'R'),
    ])
    unit = ClusterUnit(cluster_level=0, cluster_size=4, dataflow=dataflow, dimensions=dims)
    unit.get_num_total_iterations()
    unit.get_num_clusters(is_spatial_edge=True)
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union

from clusterflow.core.dimensions import DimensionTable
from clusterflow.core.directives import Directive, DirectiveTable
from clusterflow.core.tensors import TensorTable
from clusterflow.core.errors import ConfigurationError, ErrorCode, ErrorHandler
from clusterflow.hardware.noc_model import NetworkOnChipModel
from clusterflow.analysis.config import ClusterAnalysisConfig
from clusterflow.analysis.spatial_edge import SpatialEdgeProfile, analyze_spatial_edge, ceil_div


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MappedElements:
    """
    Per-dimension element counts of one mapping step.

    mapped: elements of the dimension held per step (tile size)
    spatial_unique: elements not shared with the neighbouring sub-cluster
    temporal_unique: elements not shared with the previous time step
    """
    mapped: int
    spatial_unique: int
    temporal_unique: int

    @property
    def spatial_reused(self) -> int:
        return self.mapped - self.spatial_unique

    @property
    def temporal_reused(self) -> int:
        return self.mapped - self.temporal_unique

    def to_dict(self) -> Dict:
        return {
            'mapped': self.mapped,
            'spatial_unique': self.spatial_unique,
            'temporal_unique': self.temporal_unique,
            'spatial_reused': self.spatial_reused,
            'temporal_reused': self.temporal_reused,
        }


class ClusterUnit:
    """
    Analysis of one cluster level of a dataflow mapping.

    The dimension table, tensor table and NoC model are borrowed, not
    copied. The dataflow is normalized to input-centric form at
    construction; `dataflow` returns the normalized table.
    """

    def __init__(
        self,
        cluster_level: int,
        cluster_size: int,
        dataflow: DirectiveTable,
        dimensions: DimensionTable,
        tensors: Optional[TensorTable] = None,
        noc: Optional[NetworkOnChipModel] = None,
        *,
        name: Optional[str] = None,
        error_handler: Optional[ErrorHandler] = None,
        config: Optional[ClusterAnalysisConfig] = None,
    ):
        """
        Args:
            cluster_level: Hierarchy level being analyzed (0 = outermost)
            cluster_size: Number of sub-clusters at this level
            dataflow: Directives of this level, outer to inner
            dimensions: Dimension table of the operation
            tensors: Tensor table, passed through
            noc: NoC model of this level, passed through
            name: Name used in error reports
            error_handler: Receives configuration errors
            config: Analysis configuration

        Raises:
            ConfigurationError: if the mapping is invalid for this level
        """
        self._cluster_level = cluster_level
        self._cluster_size = cluster_size
        self._dimensions = dimensions
        self._tensors = tensors
        self._noc = noc
        self._name = name or f"ClusterUnitAnalysis_Lv{cluster_level}"
        self._error_handler = error_handler or ErrorHandler()
        self._config = config or ClusterAnalysisConfig()

        self._upper_spatial_map_idx: Optional[int] = None
        self._lower_spatial_map_idx: Optional[int] = None
        self._inner_temporal_map_idx: Optional[int] = None

        if cluster_size < 1:
            raise self._report(ErrorCode.INVALID_CLUSTER_SIZE, f"cluster_size={cluster_size}")
        self._validate_directives(dataflow)
        self._dataflow = self._normalize(dataflow)
        self._validate_variables(self._dataflow)

        self._preprocess()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def cluster_level(self) -> int:
        return self._cluster_level

    @property
    def cluster_size(self) -> int:
        return self._cluster_size

    @property
    def name(self) -> str:
        return self._name

    @property
    def dimensions(self) -> DimensionTable:
        return self._dimensions

    @property
    def dataflow(self) -> DirectiveTable:
        return self._dataflow

    @property
    def tensors(self) -> Optional[TensorTable]:
        return self._tensors

    @property
    def noc(self) -> Optional[NetworkOnChipModel]:
        return self._noc

    @property
    def config(self) -> ClusterAnalysisConfig:
        return self._config

    @property
    def upper_spatial_map_idx(self) -> int:
        return self._upper_spatial_map_idx

    @property
    def lower_spatial_map_idx(self) -> Optional[int]:
        return self._lower_spatial_map_idx

    @property
    def inner_temporal_map_idx(self) -> int:
        return self._inner_temporal_map_idx

    @property
    def spatial_edge(self) -> SpatialEdgeProfile:
        return self._spatial_edge

    @property
    def num_spatial_iterations(self) -> int:
        return self._spatial_edge.num_spatial_iterations

    @property
    def num_steady_spatial_iterations(self) -> int:
        return self._spatial_edge.num_steady_spatial_iterations

    @property
    def num_edge_spatial_iterations(self) -> int:
        return self._spatial_edge.num_edge_spatial_iterations

    @property
    def num_spatial_edge_clusters(self) -> int:
        return self._spatial_edge.num_spatial_edge_clusters

    @property
    def mapped_elements(self) -> Mapping[str, MappedElements]:
        return self._mapped_elements

    def get_mapped_elements(self, variable: str) -> MappedElements:
        try:
            return self._mapped_elements[variable]
        except KeyError:
            raise KeyError(f"Dimension {variable} is not mapped at cluster level "
                           f"{self._cluster_level}") from None

    @property
    def num_partial_outputs(self) -> int:
        return self._num_partial_outputs

    def get_num_clusters(self, is_spatial_edge: bool = False) -> int:
        """Sub-clusters busy in a steady sweep, or in the edge sweep."""
        if not is_spatial_edge:
            return self._cluster_size
        return self._spatial_edge.num_spatial_edge_clusters

    def get_iteration_counts(self) -> Tuple[int, ...]:
        """Iterations contributed by each directive, outer to inner."""
        return tuple(self._num_iterations(d) for d in self._dataflow)

    def get_num_total_iterations(self) -> int:
        """
        Product of the per-directive iteration counts.

        Recomputed on every call.

        Raises:
            ConfigurationError: ITERATION_OVERFLOW if the product exceeds
                                config.iteration_limit
        """
        total = 1
        for directive, count in zip(self._dataflow, self.get_iteration_counts()):
            total *= count
            if total > self._config.iteration_limit:
                raise self._report(
                    ErrorCode.ITERATION_OVERFLOW,
                    f"product exceeds {self._config.iteration_limit} at {directive}",
                )
        return total

    def summary(self) -> Dict:
        return {
            'name': self._name,
            'cluster_level': self._cluster_level,
            'cluster_size': self._cluster_size,
            'dataflow': [str(d) for d in self._dataflow],
            'upper_spatial_map_idx': self._upper_spatial_map_idx,
            'lower_spatial_map_idx': self._lower_spatial_map_idx,
            'inner_temporal_map_idx': self._inner_temporal_map_idx,
            'spatial_edge': self._spatial_edge.to_dict(),
            'mapped_elements': {v: m.to_dict() for v, m in self._mapped_elements.items()},
            'num_partial_outputs': self._num_partial_outputs,
        }

    def __repr__(self) -> str:
        return (f"ClusterUnit(level={self._cluster_level}, size={self._cluster_size}, "
                f"dataflow={self._dataflow!r})")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _report(self, code: ErrorCode, detail: str = "") -> ConfigurationError:
        return self._error_handler.report(code, self._cluster_level, self._name, detail)

    def _validate_directives(self, dataflow: DirectiveTable) -> None:
        # Runs before any division by size or stride
        for directive in dataflow:
            if not directive.is_well_formed:
                raise self._report(ErrorCode.MALFORMED_DIRECTIVE, str(directive))

    def _normalize(self, dataflow: DirectiveTable) -> DirectiveTable:
        if not self._config.normalize_to_input_centric:
            return dataflow
        try:
            return dataflow.to_input_centric(self._dimensions)
        except ValueError as e:
            raise self._report(ErrorCode.MALFORMED_DIRECTIVE, str(e)) from e

    def _validate_variables(self, dataflow: DirectiveTable) -> None:
        for directive in dataflow:
            if directive.variable not in self._dimensions:
                raise self._report(ErrorCode.UNKNOWN_DIMENSION, str(directive))

    # ------------------------------------------------------------------
    # Preprocessing pipeline
    # ------------------------------------------------------------------

    def _preprocess(self) -> None:
        # Spatial map discovery feeds every later stage
        self._analyze_spatial_map_idx()
        self._analyze_inner_temporal_map_idx()
        self._analyze_spatial_edge_case()
        self._analyze_mapping_sizes()
        self._analyze_num_partial_outputs()

        logger.debug(
            "%s: cluster size %d, steady spatial iterations %d, "
            "edge spatial iterations %d, edge clusters %d",
            self._name,
            self._cluster_size,
            self.num_steady_spatial_iterations,
            self.num_edge_spatial_iterations,
            self.num_spatial_edge_clusters,
        )

    def _analyze_spatial_map_idx(self) -> None:
        for idx, directive in enumerate(self._dataflow):
            if not directive.is_spatial:
                continue
            if self._upper_spatial_map_idx is None:
                self._upper_spatial_map_idx = idx
            elif self._lower_spatial_map_idx is None:
                self._lower_spatial_map_idx = idx
            else:
                raise self._report(
                    ErrorCode.MULTI_PARALLELISM_IN_SINGLE_CLUSTER,
                    f"third spatial map {directive} at index {idx}",
                )

        if self._upper_spatial_map_idx is None:
            raise self._report(ErrorCode.NO_SPATIAL_MAP)

    def _analyze_inner_temporal_map_idx(self) -> None:
        """
        Find the inner-most temporal map under the upper spatial map.

        Unrolled temporal maps (tile covers the whole dimension) do not
        iterate and are skipped. Falls back to the upper spatial map index.
        """
        inner_idx = self._upper_spatial_map_idx
        for idx in range(self._upper_spatial_map_idx, len(self._dataflow)):
            directive = self._dataflow[idx]
            if directive.is_temporal and not directive.is_unrolled(self._dimensions):
                inner_idx = idx
        self._inner_temporal_map_idx = inner_idx

    def _analyze_spatial_edge_case(self) -> None:
        sp_directive = self._dataflow[self._upper_spatial_map_idx]
        self._spatial_edge = analyze_spatial_edge(
            dim_size=self._dimensions.get_size(sp_directive.variable),
            map_size=sp_directive.size,
            map_stride=sp_directive.stride,
            cluster_size=self._cluster_size,
        )

    def _analyze_mapping_sizes(self) -> None:
        mapped: Dict[str, MappedElements] = {}
        for idx, directive in enumerate(self._dataflow):
            if directive.is_spatial:
                spatial_unique = directive.stride
                temporal_unique = directive.size
            else:
                spatial_unique = 0
                if idx == self._inner_temporal_map_idx:
                    temporal_unique = directive.stride
                else:
                    temporal_unique = directive.size

            mapped[directive.variable] = MappedElements(
                mapped=directive.size,
                spatial_unique=spatial_unique,
                temporal_unique=temporal_unique,
            )
        self._mapped_elements = MappingProxyType(mapped)

    def _analyze_num_partial_outputs(self) -> None:
        num_pouts = 1
        for dim in self._dimensions:
            if dim.name in self._config.partial_output_skip_dims:
                continue

            if dim.is_overlapped and not dim.is_sliding_dim:
                sliding_size = self._dimensions.get_size(dim.overlapping_dim)
                adjusted_size = dim.size - sliding_size + 1
                num_pouts *= adjusted_size if adjusted_size > 0 else dim.size
            else:
                num_pouts *= dim.size
        self._num_partial_outputs = num_pouts

    # ------------------------------------------------------------------
    # Iteration counting
    # ------------------------------------------------------------------

    def _effective_dim_size(self, variable: str) -> int:
        """
        Dimension size seen by the iteration count.

        An overlapped dimension whose filter is fully resident (the filter
        directive holds the whole filter) only slides over size-filter+1
        positions. A filter larger than the dimension leaves no position,
        so the dimension contributes zero iterations.
        """
        dim_size = self._dimensions.get_size(variable)
        if not self._dimensions.is_overlapped(variable) or self._dimensions.is_sliding_dim(variable):
            return dim_size

        sliding_dim = self._dimensions.get_overlapping_dim(variable)
        sliding_size = self._dimensions.get_size(sliding_dim)
        sliding_directive = self._dataflow.find_directive(sliding_dim)
        if sliding_directive is not None and sliding_directive.size == sliding_size:
            return max(dim_size - sliding_size + 1, 0)
        return dim_size

    def _num_iterations(self, directive: Directive) -> int:
        dim_size = self._effective_dim_size(directive.variable)
        if directive.is_spatial:
            return ceil_div(dim_size, directive.stride * self._cluster_size)
        return ceil_div(dim_size, directive.stride)


def analyze_cluster(
    cluster_level: int,
    cluster_size: int,
    dataflow: DirectiveTable,
    dimensions: DimensionTable,
    tensors: Optional[TensorTable] = None,
    noc: Optional[NetworkOnChipModel] = None,
    *,
    name: Optional[str] = None,
    error_handler: Optional[ErrorHandler] = None,
    config: Optional[ClusterAnalysisConfig] = None,
) -> Union[ClusterUnit, ConfigurationError]:
    """
    Build a ClusterUnit, returning the ConfigurationError instead of raising.

    Lets a search loop discard an invalid candidate and continue.
    """
    try:
        return ClusterUnit(
            cluster_level,
            cluster_size,
            dataflow,
            dimensions,
            tensors,
            noc,
            name=name,
            error_handler=error_handler,
            config=config,
        )
    except ConfigurationError as e:
        return e
