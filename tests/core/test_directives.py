#!/usr/bin/env python
"""
Unit tests for mapping directives and directive tables.

Includes the output-centric to input-centric rewrite applied before
cluster analysis.
"""

import pytest

from clusterflow.core.dimensions import DimensionTable, LAYER_DIM_OUTPUT_HEIGHT
from clusterflow.core.directives import Directive, DirectiveClass, DirectiveTable


@pytest.fixture
def conv_dims():
    return DimensionTable.for_conv2d(N=1, K=16, C=8, R=3, S=3, Y=16, X=16)


def test_directive_constructors():
    sp = Directive.spatial(4, 2, 'K')
    tp = Directive.temporal(3, 1, 'C')

    assert sp.directive_class == DirectiveClass.SPATIAL_MAP
    assert sp.is_spatial and not sp.is_temporal
    assert tp.is_temporal and not tp.is_spatial
    assert (sp.size, sp.stride, sp.variable) == (4, 2, 'K')
    assert str(sp) == "SpatialMap(4,2) K"
    assert str(tp) == "TemporalMap(3,1) C"


def test_well_formed():
    assert Directive.temporal(1, 1, 'C').is_well_formed
    assert not Directive.temporal(0, 1, 'C').is_well_formed
    assert not Directive.spatial(1, 0, 'K').is_well_formed


def test_is_unrolled(conv_dims):
    assert Directive.temporal(8, 8, 'C').is_unrolled(conv_dims)
    assert Directive.temporal(10, 10, 'C').is_unrolled(conv_dims)
    assert not Directive.temporal(4, 4, 'C').is_unrolled(conv_dims)


def test_table_access():
    table = DirectiveTable([
        Directive.temporal(1, 1, 'N'),
        Directive.spatial(1, 1, 'K'),
        Directive.temporal(2, 2, 'C'),
    ])

    assert len(table) == 3
    assert table[1].variable == 'K'
    assert [d.variable for d in table] == ['N', 'K', 'C']
    assert table.find_directive('C') == Directive.temporal(2, 2, 'C')
    assert table.find_directive('R') is None
    assert table.spatial_directives() == [Directive.spatial(1, 1, 'K')]
    assert table.to_dataflow_string().splitlines()[1] == "SpatialMap(1,1) K"


def test_duplicate_variable_rejected():
    with pytest.raises(ValueError):
        DirectiveTable([Directive.temporal(1, 1, 'C'), Directive.spatial(1, 1, 'C')])


def test_input_centric_uses_filter_directive_size(conv_dims):
    """Y' tile of 2 rows under a full 3-row filter needs 4 input rows"""
    table = DirectiveTable([
        Directive.spatial(1, 1, 'K'),
        Directive.temporal(2, 1, LAYER_DIM_OUTPUT_HEIGHT),
        Directive.temporal(3, 3, 'R'),
    ])
    assert not table.is_input_centric

    converted = table.to_input_centric(conv_dims)

    assert converted.is_input_centric
    assert converted[1] == Directive.temporal(4, 1, 'Y')
    assert converted[0] == table[0]
    assert converted[2] == table[2]
    # Source table is left untouched
    assert table[1].variable == LAYER_DIM_OUTPUT_HEIGHT


def test_input_centric_partial_filter_tile(conv_dims):
    table = DirectiveTable([
        Directive.spatial(2, 2, LAYER_DIM_OUTPUT_HEIGHT),
        Directive.temporal(1, 1, 'R'),
    ])
    converted = table.to_input_centric(conv_dims)
    assert converted[0] == Directive.spatial(2, 2, 'Y')


def test_input_centric_without_filter_directive(conv_dims):
    """Falls back to the full filter size when R is not mapped"""
    table = DirectiveTable([Directive.spatial(2, 1, LAYER_DIM_OUTPUT_HEIGHT)])
    converted = table.to_input_centric(conv_dims)
    assert converted[0] == Directive.spatial(4, 1, 'Y')


def test_input_centric_is_idempotent(conv_dims):
    table = DirectiveTable([
        Directive.spatial(1, 1, 'K'),
        Directive.temporal(2, 1, "X'"),
    ])
    converted = table.to_input_centric(conv_dims)
    assert converted.to_input_centric(conv_dims) is converted

    already = DirectiveTable([Directive.spatial(1, 1, 'K')])
    assert already.to_input_centric(conv_dims) is already


def test_input_centric_collision_rejected(conv_dims):
    table = DirectiveTable([
        Directive.spatial(1, 1, 'K'),
        Directive.temporal(4, 1, 'Y'),
        Directive.temporal(2, 1, LAYER_DIM_OUTPUT_HEIGHT),
    ])
    with pytest.raises(ValueError):
        table.to_input_centric(conv_dims)


def test_tables_compare_by_content():
    a = DirectiveTable([Directive.spatial(1, 1, 'K')])
    b = DirectiveTable([Directive.spatial(1, 1, 'K')])
    assert a == b
    assert hash(a) == hash(b)
