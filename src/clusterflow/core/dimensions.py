"""
Dimension Table

Per-dimension sizes and sliding-window relationships for a tensor operation.

A convolution input row (Y) is "overlapped" by the filter row (R): adjacent
output rows read overlapping windows of Y whose extent is set by R. R is the
"sliding" dimension of the pair. Both members of a pair are flagged as
overlapped and each names the other as its partner.

Usage:
    from clusterflow.core.dimensions import DimensionTable

    dims = DimensionTable.for_conv2d(N=1, K=64, C=64, R=3, S=3, Y=56, X=56)
    dims.get_size('Y')               # 56
    dims.get_overlapping_dim('Y')    # 'R'
    dims.is_sliding_dim('R')         # True
"""

from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Dict, Iterator, List, Optional, Sequence, Tuple


# Canonical convolution dimension names
LAYER_DIM_BATCH = "N"
LAYER_DIM_OUTPUT_CHANNEL = "K"
LAYER_DIM_INPUT_CHANNEL = "C"
LAYER_DIM_WEIGHT_HEIGHT = "R"
LAYER_DIM_WEIGHT_WIDTH = "S"
LAYER_DIM_INPUT_HEIGHT = "Y"
LAYER_DIM_INPUT_WIDTH = "X"
LAYER_DIM_OUTPUT_HEIGHT = "Y'"
LAYER_DIM_OUTPUT_WIDTH = "X'"

# Output-centric dimension -> input dimension it is rewritten to
OUTPUT_TO_INPUT_DIMS = {
    LAYER_DIM_OUTPUT_HEIGHT: LAYER_DIM_INPUT_HEIGHT,
    LAYER_DIM_OUTPUT_WIDTH: LAYER_DIM_INPUT_WIDTH,
}


@dataclass(frozen=True)
class Dimension:
    """
    A single loop dimension of the operation.

    Attributes:
        name: Dimension identifier (e.g. 'K', 'Y')
        size: Full extent of the dimension
        is_overlapped: True if the dimension is part of a sliding-window pair
        is_sliding_dim: True if this is the window (filter) side of the pair
        overlapping_dim: Name of the partner dimension, if any
    """
    name: str
    size: int
    is_overlapped: bool = False
    is_sliding_dim: bool = False
    overlapping_dim: Optional[str] = None

    def __post_init__(self):
        if self.size < 1:
            raise ValueError(f"Dimension {self.name} must have size >= 1, got {self.size}")
        if self.is_sliding_dim and not self.is_overlapped:
            raise ValueError(f"Sliding dimension {self.name} must be flagged overlapped")
        if self.is_overlapped and self.overlapping_dim is None:
            raise ValueError(f"Overlapped dimension {self.name} has no overlapping partner")

    def __str__(self) -> str:
        if self.is_overlapped:
            role = "sliding" if self.is_sliding_dim else "overlapped"
            return f"{self.name}={self.size} ({role} with {self.overlapping_dim})"
        return f"{self.name}={self.size}"


class DimensionTable:
    """
    Immutable registry of dimensions.

    Built from (name, size) pairs plus (overlapped, sliding) pairs.
    Iteration yields Dimension records in insertion order.
    """

    def __init__(
        self,
        sizes: Sequence[Tuple[str, int]],
        overlaps: Sequence[Tuple[str, str]] = (),
    ):
        """
        Args:
            sizes: Ordered (dimension name, size) pairs
            overlaps: (overlapped dimension, sliding dimension) pairs,
                      e.g. [('Y', 'R'), ('X', 'S')]
        """
        dims: Dict[str, Dimension] = {}
        for name, size in sizes:
            if name in dims:
                raise ValueError(f"Duplicate dimension: {name}")
            dims[name] = Dimension(name=name, size=size)

        for overlapped, sliding in overlaps:
            for name in (overlapped, sliding):
                if name not in dims:
                    raise ValueError(f"Overlap refers to unknown dimension: {name}")
                if dims[name].is_overlapped:
                    raise ValueError(f"Dimension {name} appears in more than one overlap pair")
            if overlapped == sliding:
                raise ValueError(f"Dimension {overlapped} cannot overlap itself")
            dims[overlapped] = replace(
                dims[overlapped], is_overlapped=True, overlapping_dim=sliding
            )
            dims[sliding] = replace(
                dims[sliding], is_overlapped=True, is_sliding_dim=True, overlapping_dim=overlapped
            )

        self._dims = MappingProxyType(dims)

    @classmethod
    def for_conv2d(
        cls,
        N: int = 1,
        K: int = 1,
        C: int = 1,
        R: int = 1,
        S: int = 1,
        Y: int = 1,
        X: int = 1,
        include_output_dims: bool = True,
    ) -> 'DimensionTable':
        """
        Create the dimension table of a stride-1 2D convolution.

        Y/X are the input height/width. When include_output_dims is set the
        output height/width (Y', X') are added with size Y-R+1 / X-S+1.
        """
        sizes: List[Tuple[str, int]] = [
            (LAYER_DIM_BATCH, N),
            (LAYER_DIM_OUTPUT_CHANNEL, K),
            (LAYER_DIM_INPUT_CHANNEL, C),
            (LAYER_DIM_WEIGHT_HEIGHT, R),
            (LAYER_DIM_WEIGHT_WIDTH, S),
            (LAYER_DIM_INPUT_HEIGHT, Y),
            (LAYER_DIM_INPUT_WIDTH, X),
        ]
        if include_output_dims:
            sizes.append((LAYER_DIM_OUTPUT_HEIGHT, Y - R + 1))
            sizes.append((LAYER_DIM_OUTPUT_WIDTH, X - S + 1))

        overlaps = [
            (LAYER_DIM_INPUT_HEIGHT, LAYER_DIM_WEIGHT_HEIGHT),
            (LAYER_DIM_INPUT_WIDTH, LAYER_DIM_WEIGHT_WIDTH),
        ]
        return cls(sizes, overlaps)

    def __iter__(self) -> Iterator[Dimension]:
        return iter(self._dims.values())

    def __len__(self) -> int:
        return len(self._dims)

    def __contains__(self, name: str) -> bool:
        return name in self._dims

    def get(self, name: str) -> Dimension:
        try:
            return self._dims[name]
        except KeyError:
            raise KeyError(f"Unknown dimension: {name}") from None

    def get_size(self, name: str) -> int:
        return self.get(name).size

    def is_overlapped(self, name: str) -> bool:
        return self.get(name).is_overlapped

    def is_sliding_dim(self, name: str) -> bool:
        return self.get(name).is_sliding_dim

    def get_overlapping_dim(self, name: str) -> Optional[str]:
        return self.get(name).overlapping_dim

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._dims.keys())

    def to_dict(self) -> Dict[str, int]:
        """Convert to {name: size}."""
        return {name: dim.size for name, dim in self._dims.items()}

    def __repr__(self) -> str:
        return f"DimensionTable({', '.join(str(d) for d in self)})"
