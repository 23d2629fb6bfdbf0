"""
Core Mapping Data Structures

Dimension, directive and tensor tables shared by every cluster level of a
mapping, plus the configuration error taxonomy.
"""

from .dimensions import (
    Dimension,
    DimensionTable,
    LAYER_DIM_BATCH,
    LAYER_DIM_OUTPUT_CHANNEL,
    LAYER_DIM_INPUT_CHANNEL,
    LAYER_DIM_WEIGHT_HEIGHT,
    LAYER_DIM_WEIGHT_WIDTH,
    LAYER_DIM_INPUT_HEIGHT,
    LAYER_DIM_INPUT_WIDTH,
    LAYER_DIM_OUTPUT_HEIGHT,
    LAYER_DIM_OUTPUT_WIDTH,
    OUTPUT_TO_INPUT_DIMS,
)

from .directives import (
    Directive,
    DirectiveClass,
    DirectiveTable,
)

from .tensors import (
    Tensor,
    TensorClass,
    TensorTable,
)

from .errors import (
    ErrorCode,
    ConfigurationError,
    ErrorHandler,
)

__all__ = [
    # Dimensions
    'Dimension',
    'DimensionTable',
    'LAYER_DIM_BATCH',
    'LAYER_DIM_OUTPUT_CHANNEL',
    'LAYER_DIM_INPUT_CHANNEL',
    'LAYER_DIM_WEIGHT_HEIGHT',
    'LAYER_DIM_WEIGHT_WIDTH',
    'LAYER_DIM_INPUT_HEIGHT',
    'LAYER_DIM_INPUT_WIDTH',
    'LAYER_DIM_OUTPUT_HEIGHT',
    'LAYER_DIM_OUTPUT_WIDTH',
    'OUTPUT_TO_INPUT_DIMS',
    # Directives
    'Directive',
    'DirectiveClass',
    'DirectiveTable',
    # Tensors
    'Tensor',
    'TensorClass',
    'TensorTable',
    # Errors
    'ErrorCode',
    'ConfigurationError',
    'ErrorHandler',
]
