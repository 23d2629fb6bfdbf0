"""
Mapping Directives

A dataflow is an ordered (outer to inner) list of directives. Each directive
maps one dimension either temporally (iterated over time inside a cluster)
or spatially (distributed across the sub-clusters of a cluster).

    TemporalMap(size=3, stride=1) C     # 3 channels per step, advance by 1
    SpatialMap(size=1, stride=1) K      # one output channel per sub-cluster

Usage:
    from clusterflow.core.directives import Directive, DirectiveTable

    dataflow = DirectiveTable([
        Directive.temporal(1, 1, 'N'),
        Directive.spatial(1, 1, 'K'),
        Directive.temporal(3, 1, 'C'),
    ])
    dataflow.find_directive('K')
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple

from clusterflow.core.dimensions import DimensionTable, OUTPUT_TO_INPUT_DIMS


class DirectiveClass(Enum):
    """Mapping directive kind."""
    SPATIAL_MAP = "spatial_map"    # Distributed across sub-clusters
    TEMPORAL_MAP = "temporal_map"  # Iterated over time


@dataclass(frozen=True)
class Directive:
    """
    One mapping directive.

    Attributes:
        variable: Dimension mapped by this directive
        directive_class: Spatial or temporal
        size: Tile size (elements held per mapping step)
        stride: Elements the tile advances per iteration step
    """
    variable: str
    directive_class: DirectiveClass
    size: int
    stride: int

    @classmethod
    def spatial(cls, size: int, stride: int, variable: str) -> 'Directive':
        return cls(variable, DirectiveClass.SPATIAL_MAP, size, stride)

    @classmethod
    def temporal(cls, size: int, stride: int, variable: str) -> 'Directive':
        return cls(variable, DirectiveClass.TEMPORAL_MAP, size, stride)

    @property
    def is_spatial(self) -> bool:
        return self.directive_class == DirectiveClass.SPATIAL_MAP

    @property
    def is_temporal(self) -> bool:
        return self.directive_class == DirectiveClass.TEMPORAL_MAP

    @property
    def is_well_formed(self) -> bool:
        """Tile size and stride are both positive."""
        return self.size >= 1 and self.stride >= 1

    def is_unrolled(self, dimensions: DimensionTable) -> bool:
        """True if one tile already covers the whole dimension."""
        return self.size >= dimensions.get_size(self.variable)

    def __str__(self) -> str:
        kind = "SpatialMap" if self.is_spatial else "TemporalMap"
        return f"{kind}({self.size},{self.stride}) {self.variable}"


class DirectiveTable:
    """
    Immutable ordered sequence of directives, at most one per dimension.

    Shared by every cluster level that analyzes it; transformations return
    a new table.
    """

    def __init__(self, directives: Iterable[Directive]):
        self._directives: Tuple[Directive, ...] = tuple(directives)

        seen = set()
        for directive in self._directives:
            if directive.variable in seen:
                raise ValueError(f"Duplicate directive for dimension {directive.variable}")
            seen.add(directive.variable)

    def __iter__(self) -> Iterator[Directive]:
        return iter(self._directives)

    def __len__(self) -> int:
        return len(self._directives)

    def __getitem__(self, idx: int) -> Directive:
        return self._directives[idx]

    def __eq__(self, other) -> bool:
        if not isinstance(other, DirectiveTable):
            return NotImplemented
        return self._directives == other._directives

    def __hash__(self) -> int:
        return hash(self._directives)

    def find_directive(self, variable: str) -> Optional[Directive]:
        """Return the directive mapping `variable`, or None."""
        for directive in self._directives:
            if directive.variable == variable:
                return directive
        return None

    def spatial_directives(self) -> List[Directive]:
        return [d for d in self._directives if d.is_spatial]

    @property
    def is_input_centric(self) -> bool:
        return all(d.variable not in OUTPUT_TO_INPUT_DIMS for d in self._directives)

    def to_input_centric(self, dimensions: DimensionTable) -> 'DirectiveTable':
        """
        Rewrite output-centric directives onto input dimensions.

        A directive over output row Y' covering `size` output rows needs
        `size + r - 1` input rows, where r is the tile size of the filter
        row directive (or the full filter height when R is not mapped).
        The stride is kept unchanged.

        Returns self when no output-dimension directive is present.
        """
        if self.is_input_centric:
            return self

        converted = []
        for directive in self._directives:
            input_dim = OUTPUT_TO_INPUT_DIMS.get(directive.variable)
            if input_dim is None:
                converted.append(directive)
                continue

            size = directive.size
            if input_dim in dimensions and dimensions.is_overlapped(input_dim):
                sliding_dim = dimensions.get_overlapping_dim(input_dim)
                sliding_directive = self.find_directive(sliding_dim)
                if sliding_directive is not None:
                    sliding_size = sliding_directive.size
                else:
                    sliding_size = dimensions.get_size(sliding_dim)
                size = size + sliding_size - 1

            converted.append(replace(directive, variable=input_dim, size=size))

        return DirectiveTable(converted)

    def to_dataflow_string(self) -> str:
        """One directive per line, outer to inner."""
        return "\n".join(str(d) for d in self._directives)

    def __repr__(self) -> str:
        return f"DirectiveTable([{'; '.join(str(d) for d in self._directives)}])"
