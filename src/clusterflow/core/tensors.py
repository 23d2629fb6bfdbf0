"""
Tensor Table

Which dimensions each operand tensor is coupled with. The cluster analysis
only carries this table through to downstream cost estimators.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Tuple

from clusterflow.core.dimensions import (
    LAYER_DIM_BATCH,
    LAYER_DIM_OUTPUT_CHANNEL,
    LAYER_DIM_INPUT_CHANNEL,
    LAYER_DIM_WEIGHT_HEIGHT,
    LAYER_DIM_WEIGHT_WIDTH,
    LAYER_DIM_INPUT_HEIGHT,
    LAYER_DIM_INPUT_WIDTH,
    LAYER_DIM_OUTPUT_HEIGHT,
    LAYER_DIM_OUTPUT_WIDTH,
)


class TensorClass(Enum):
    """Operand role of a tensor."""
    INPUT = "input"
    WEIGHT = "weight"
    OUTPUT = "output"


@dataclass(frozen=True)
class Tensor:
    name: str
    tensor_class: TensorClass
    dims: Tuple[str, ...]

    def is_coupled(self, dim: str) -> bool:
        return dim in self.dims


class TensorTable:
    """Immutable collection of tensors, looked up by name."""

    def __init__(self, tensors: Iterable[Tensor]):
        self._tensors: Tuple[Tensor, ...] = tuple(tensors)
        names = [t.name for t in self._tensors]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate tensor names in {names}")

    @classmethod
    def for_conv2d(cls) -> 'TensorTable':
        """Input, weight and output tensors of a 2D convolution."""
        return cls([
            Tensor("input", TensorClass.INPUT, (
                LAYER_DIM_BATCH, LAYER_DIM_INPUT_CHANNEL,
                LAYER_DIM_INPUT_HEIGHT, LAYER_DIM_INPUT_WIDTH,
            )),
            Tensor("weight", TensorClass.WEIGHT, (
                LAYER_DIM_OUTPUT_CHANNEL, LAYER_DIM_INPUT_CHANNEL,
                LAYER_DIM_WEIGHT_HEIGHT, LAYER_DIM_WEIGHT_WIDTH,
            )),
            Tensor("output", TensorClass.OUTPUT, (
                LAYER_DIM_BATCH, LAYER_DIM_OUTPUT_CHANNEL,
                LAYER_DIM_OUTPUT_HEIGHT, LAYER_DIM_OUTPUT_WIDTH,
            )),
        ])

    def __iter__(self) -> Iterator[Tensor]:
        return iter(self._tensors)

    def __len__(self) -> int:
        return len(self._tensors)

    def get_tensor(self, name: str) -> Tensor:
        for tensor in self._tensors:
            if tensor.name == name:
                return tensor
        raise KeyError(f"Unknown tensor: {name}")

    def tensors_of(self, tensor_class: TensorClass) -> List[Tensor]:
        return [t for t in self._tensors if t.tensor_class == tensor_class]

    def tensors_coupled_with(self, dim: str) -> List[Tensor]:
        return [t for t in self._tensors if t.is_coupled(dim)]
