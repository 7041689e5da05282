import numpy as np
import pytest

from bfsverify.errors import MalformedGraph
from bfsverify.model import Graph, Scenario, parity_mask


def test_from_arrays_is_read_only_int32():
    g = Graph.from_arrays([0, 2, 3, 3], [1, 2, 0])
    assert (g.n, g.nnz) == (3, 3)
    assert g.row_offsets.dtype == np.int32
    assert g.neighbors(0).tolist() == [1, 2]
    with pytest.raises(ValueError):
        g.column_indices[0] = 2


@pytest.mark.parametrize("offsets, cols", [
    ([], []),                    # no offsets at all
    ([1, 2], [0]),               # does not start at 0
    ([0, 2, 1, 3], [0, 1, 2]),   # not monotonic
    ([0, 1, 2], [0, 5]),         # column out of range
    ([0, 1, 3], [0, 1]),         # last offset != nnz
])
def test_malformed_csr(offsets, cols):
    with pytest.raises(MalformedGraph):
        Graph.from_arrays(offsets, cols)


def test_declared_sizes_must_match_data():
    with pytest.raises(MalformedGraph):
        Graph.from_arrays([0, 1], [0], n=2)
    with pytest.raises(MalformedGraph):
        Graph.from_arrays([0, 1], [0], nnz=3)


def test_parity_mask_disables_even_edges():
    assert parity_mask(5).tolist() == [0, 1, 0, 1, 0]
    assert parity_mask(0).size == 0


def test_symmetrized_merges_directions():
    g = Graph.from_edges(3, [(0, 1), (1, 2), (2, 1)])
    s = g.symmetrized()
    assert s.nnz == 4
    assert s.neighbors(1).tolist() == [0, 2]
    assert s.neighbors(2).tolist() == [1]


def test_symmetrized_drops_masked_edges_both_ways():
    g = Graph.from_edges(3, [(0, 1), (1, 2)])
    s = g.symmetrized(np.array([0, 1]))
    assert s.neighbors(0).size == 0
    assert s.neighbors(2).tolist() == [1]


def test_scenario_ids():
    assert Scenario("graphs/small/small.bin", 3, use_mask=True).scenario_id == "small.bin_3_mask"
    assert Scenario("synthetic:cycle:1024", 0).scenario_id == "synthetic-cycle-1024_0"
    assert Scenario("graphs/dblp/dblp.bin", 100, undirected=True).scenario_id == "dblp.bin_100_undirected"
