"""
Configuration Errors

Every error the cluster analysis can raise is a permanent defect of the
mapping being analyzed. Errors are raised as ConfigurationError so that a
caller evaluating many candidate mappings can drop the offending one and
keep going.

Usage:
    from clusterflow.core.errors import ErrorCode, ErrorHandler

    handler = ErrorHandler()
    raise handler.report(ErrorCode.NO_SPATIAL_MAP, 0, "ClusterUnitAnalysis_Lv0")
"""

import logging
from enum import Enum
from typing import Optional


logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """Mapping configuration error kinds."""
    NO_SPATIAL_MAP = "no_spatial_map"
    MULTI_PARALLELISM_IN_SINGLE_CLUSTER = "multi_parallelism_in_single_cluster"
    MALFORMED_DIRECTIVE = "malformed_directive"
    ITERATION_OVERFLOW = "iteration_overflow"
    UNKNOWN_DIMENSION = "unknown_dimension"
    INVALID_CLUSTER_SIZE = "invalid_cluster_size"


_ERROR_MESSAGES = {
    ErrorCode.NO_SPATIAL_MAP: "No spatial map in cluster level",
    ErrorCode.MULTI_PARALLELISM_IN_SINGLE_CLUSTER:
        "More than two spatial maps in a single cluster level",
    ErrorCode.MALFORMED_DIRECTIVE: "Directive with non-positive size or stride",
    ErrorCode.ITERATION_OVERFLOW: "Total iteration count exceeds the representable range",
    ErrorCode.UNKNOWN_DIMENSION: "Directive maps a dimension missing from the dimension table",
    ErrorCode.INVALID_CLUSTER_SIZE: "Cluster size must be at least 1",
}


class ConfigurationError(Exception):
    """
    Invalid mapping for a cluster level.

    Attributes:
        code: ErrorCode identifying the defect
        cluster_level: Cluster level being analyzed
        source: Name of the analysis that detected it
        detail: Free-form context (offending directive, values)
    """

    def __init__(
        self,
        code: ErrorCode,
        cluster_level: int,
        source: str = "",
        detail: str = "",
    ):
        self.code = code
        self.cluster_level = cluster_level
        self.source = source
        self.detail = detail
        super().__init__(self.format_message())

    def __reduce__(self):
        return (type(self), (self.code, self.cluster_level, self.source, self.detail))

    def format_message(self) -> str:
        msg = f"[{self.source}] {_ERROR_MESSAGES[self.code]} (cluster level {self.cluster_level})"
        if self.detail:
            msg += f": {self.detail}"
        return msg


class ErrorHandler:
    """
    Error reporting capability handed to an analysis.

    report() logs the error and returns the exception for the caller to
    raise, so control flow stays visible at the call site.
    """

    def __init__(self, log_level: int = logging.ERROR):
        self.log_level = log_level
        self.num_reported = 0
        self.last_error: Optional[ConfigurationError] = None

    def report(
        self,
        code: ErrorCode,
        cluster_level: int,
        source: str = "",
        detail: str = "",
    ) -> ConfigurationError:
        error = ConfigurationError(code, cluster_level, source, detail)
        logger.log(self.log_level, "%s", error)
        self.num_reported += 1
        self.last_error = error
        return error
