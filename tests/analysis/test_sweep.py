#!/usr/bin/env python
"""
Unit tests for the mapping candidate sweep.

Invalid candidates must be recorded and skipped without stopping the sweep.
"""

import logging

import pytest

from clusterflow.analysis import (
    ClusterAnalysisConfig,
    ClusterCandidateSweeper,
    ClusterUnit,
)
from clusterflow.core import DimensionTable, Directive, DirectiveTable, ErrorCode, ErrorHandler


@pytest.fixture
def sweeper():
    dims = DimensionTable.for_conv2d(N=1, K=16, C=8, R=3, S=3, Y=16, X=16)
    return ClusterCandidateSweeper(dims, cluster_size=4)


@pytest.fixture
def candidates():
    return [
        # total = ceil(16/16) * ceil(8/2) = 4
        DirectiveTable([Directive.spatial(4, 4, 'K'), Directive.temporal(2, 2, 'C')]),
        # no spatial map
        DirectiveTable([Directive.temporal(1, 1, 'K')]),
        # total = ceil(16/16) * ceil(8/4) = 2
        DirectiveTable([Directive.spatial(4, 4, 'K'), Directive.temporal(4, 4, 'C')]),
        # three spatial maps
        DirectiveTable([
            Directive.spatial(1, 1, 'K'),
            Directive.spatial(1, 1, 'C'),
            Directive.spatial(1, 1, 'N'),
        ]),
        # zero stride
        DirectiveTable([Directive.spatial(1, 0, 'K')]),
    ]


def test_sweep_skips_invalid_candidates(sweeper, candidates):
    result = sweeper.sweep(candidates)

    assert len(result.results) == 5
    assert result.num_valid == 2
    assert result.num_invalid == 3
    assert result.error_counts == {
        ErrorCode.NO_SPATIAL_MAP: 1,
        ErrorCode.MULTI_PARALLELISM_IN_SINGLE_CLUSTER: 1,
        ErrorCode.MALFORMED_DIRECTIVE: 1,
    }

    first = result.results[0]
    assert first.is_valid
    assert isinstance(first.cluster_unit, ClusterUnit)
    assert first.total_iterations == 4
    assert result.results[1].cluster_unit is None


def test_best_candidate(sweeper, candidates):
    result = sweeper.sweep(candidates)
    best = result.best()

    assert best.index == 2
    assert best.total_iterations == 2


def test_best_with_no_valid_candidates(sweeper):
    result = sweeper.sweep([DirectiveTable([Directive.temporal(1, 1, 'K')])])
    assert result.best() is None
    assert result.iteration_statistics() == {'count': 0}


def test_overflow_recorded_as_invalid():
    dims = DimensionTable.for_conv2d(K=16, C=8)
    sweeper = ClusterCandidateSweeper(
        dims, cluster_size=4, config=ClusterAnalysisConfig(iteration_limit=3)
    )
    result = sweeper.sweep([
        DirectiveTable([Directive.spatial(4, 4, 'K'), Directive.temporal(2, 2, 'C')]),
        DirectiveTable([Directive.spatial(4, 4, 'K'), Directive.temporal(4, 4, 'C')]),
    ])

    assert result.results[0].error.code == ErrorCode.ITERATION_OVERFLOW
    assert result.results[1].is_valid
    assert result.best().index == 1


def test_progress_callback(sweeper, candidates):
    seen = []
    sweeper.sweep(candidates, progress_callback=lambda idx, df: seen.append(idx))
    assert seen == [0, 1, 2, 3, 4]


def test_statistics_and_export(sweeper, candidates):
    result = sweeper.sweep(candidates)

    stats = result.iteration_statistics()
    assert stats['count'] == 2
    assert stats['mean'] == pytest.approx(3.0)
    assert stats['min'] == 2
    assert stats['max'] == 4

    summary = result.to_dict()
    assert summary['num_candidates'] == 5
    assert summary['error_counts']['no_spatial_map'] == 1

    df = result.to_dataframe()
    assert len(df) == 5
    assert list(df['valid']) == [True, False, True, False, False]
    assert df.loc[0, 'num_edge_clusters'] == 4
    assert df.loc[1, 'error'] == 'no_spatial_map'


def test_sweeper_handler_counts_reports(sweeper, candidates):
    sweeper.sweep(candidates)
    assert sweeper.error_handler.num_reported == 3


def test_statistics_keep_exact_large_totals():
    # (2**31 + 1) * (2**31 - 1) = 2**62 - 1, beyond float precision
    dims = DimensionTable([('A', 2 ** 31 + 1), ('B', 2 ** 31 - 1)])
    sweeper = ClusterCandidateSweeper(dims, cluster_size=1)
    result = sweeper.sweep([
        DirectiveTable([Directive.spatial(1, 1, 'A'), Directive.temporal(1, 1, 'B')]),
    ])

    total = result.results[0].total_iterations
    assert total == 2 ** 62 - 1
    stats = result.iteration_statistics()
    assert stats['min'] == total
    assert stats['max'] == total
    assert result.to_dict()['iterations']['max'] == total


def test_rejected_candidates_log_below_error(sweeper, candidates, caplog):
    with caplog.at_level(logging.DEBUG, logger="clusterflow.core.errors"):
        sweeper.sweep(candidates)

    rejected = [r for r in caplog.records if r.name == "clusterflow.core.errors"]
    assert len(rejected) == 3
    assert all(r.levelno == logging.DEBUG for r in rejected)


def test_explicit_handler_keeps_its_level(candidates, caplog):
    dims = DimensionTable.for_conv2d(N=1, K=16, C=8, R=3, S=3, Y=16, X=16)
    sweeper = ClusterCandidateSweeper(dims, cluster_size=4, error_handler=ErrorHandler())

    with caplog.at_level(logging.DEBUG, logger="clusterflow.core.errors"):
        sweeper.sweep(candidates)
    assert any(r.levelno == logging.ERROR for r in caplog.records)
