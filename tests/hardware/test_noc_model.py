#!/usr/bin/env python
"""
Unit tests for the NoC model handle.
"""

import pytest

from clusterflow.hardware import NetworkOnChipModel


def test_out_latency():
    noc = NetworkOnChipModel(bandwidth=4, num_hops=2, hop_latency=1)
    assert noc.get_out_latency(10) == 2 + 3
    assert noc.get_out_latency(8) == 2 + 2
    assert noc.get_out_latency(0) == 0


def test_defaults():
    noc = NetworkOnChipModel()
    assert noc.get_out_latency(5) == 1 + 5
    assert "multicast" in str(noc)


def test_invalid_parameters():
    with pytest.raises(ValueError):
        NetworkOnChipModel(bandwidth=0)
    with pytest.raises(ValueError):
        NetworkOnChipModel(num_hops=-1)
