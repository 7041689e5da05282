import networkx as nx
import numpy as np
import pytest

from bfsverify.catalog import cycle_graph, grid_graph, islands_graph, path_graph, random_graph
from bfsverify.model import UNREACHABLE, Graph, parity_mask
from bfsverify.reference import ReferenceEngine, reference_bfs

U = UNREACHABLE


def test_cycle_distances_are_vertex_numbers():
    dist = reference_bfs(cycle_graph(1024), 0)
    assert dist.tolist() == list(range(1024))


def test_unreachable_sentinel():
    dist = reference_bfs(islands_graph(4), 0)
    assert dist.tolist() == [0, 1, 2, 3, U, U, U, U]


def test_mask_removes_shortcut():
    g = Graph.from_edges(3, [(0, 2), (0, 1), (1, 2)])
    assert reference_bfs(g, 0).tolist() == [0, 1, 1]
    assert reference_bfs(g, 0, mask=np.array([0, 1, 1])).tolist() == [0, 1, 2]


def test_undirected_walks_edges_backwards():
    g = path_graph(4)
    assert reference_bfs(g, 3).tolist() == [U, U, U, 0]
    assert reference_bfs(g, 3, undirected=True).tolist() == [3, 2, 1, 0]


def test_undirected_respects_mask():
    # parity mask leaves only edge #1, i.e. 1 -> 2
    g = path_graph(4)
    dist = reference_bfs(g, 1, mask=parity_mask(g.nnz), undirected=True)
    assert dist.tolist() == [U, 0, 1, U]


def test_layer_stats_on_grid():
    res = ReferenceEngine(grid_graph(3, 3)).bfs(0)
    assert res["layer_sizes"] == {0: 1, 1: 2, 2: 3, 3: 2, 4: 1}
    assert res["reachable_count"] == 9
    assert res["transitions"] == 12


def test_source_out_of_range():
    with pytest.raises(ValueError):
        reference_bfs(cycle_graph(8), 8)


def _nx_distances(graph, source, undirected=False):
    G = nx.Graph() if undirected else nx.DiGraph()
    G.add_nodes_from(range(graph.n))
    G.add_edges_from(zip(graph.edge_sources().tolist(), graph.column_indices.tolist()))
    lengths = nx.single_source_shortest_path_length(G, source)
    return [lengths.get(v, U) for v in range(graph.n)]


@pytest.mark.parametrize("source", [0, 7, 150, 299])
@pytest.mark.parametrize("undirected", [False, True])
def test_matches_networkx(source, undirected):
    g = random_graph(300, 2, seed=11)
    assert reference_bfs(g, source, undirected=undirected).tolist() == \
        _nx_distances(g, source, undirected)


def test_parent_property_on_random_graph():
    # every reached vertex other than the source has an in-neighbour one level closer
    g = random_graph(500, 3, seed=3)
    dist = reference_bfs(g, 0).astype(np.int64)
    src = g.edge_sources()
    for v in np.flatnonzero((dist != U) & (dist != 0)):
        parents = src[g.column_indices == v]
        assert (dist[parents] == dist[v] - 1).any()
