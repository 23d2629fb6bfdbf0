"""
Cluster Analysis Configuration
"""

from dataclasses import dataclass
from typing import Tuple

from clusterflow.core.dimensions import LAYER_DIM_OUTPUT_WIDTH, LAYER_DIM_OUTPUT_HEIGHT


# Largest signed 64-bit integer
MAX_ITERATIONS = 2 ** 63 - 1


@dataclass(frozen=True)
class ClusterAnalysisConfig:
    """
    Knobs for ClusterUnit.

    Attributes:
        iteration_limit: Largest total iteration count accepted before
                         reporting ITERATION_OVERFLOW
        partial_output_skip_dims: Dimensions left out of the partial-output
                                  product (output width/height by default)
        normalize_to_input_centric: Rewrite output-dimension directives onto
                                    input dimensions before analysis
    """
    iteration_limit: int = MAX_ITERATIONS
    partial_output_skip_dims: Tuple[str, ...] = (LAYER_DIM_OUTPUT_WIDTH, LAYER_DIM_OUTPUT_HEIGHT)
    normalize_to_input_centric: bool = True

    def __post_init__(self):
        if self.iteration_limit < 1:
            raise ValueError(f"iteration_limit must be >= 1, got {self.iteration_limit}")
