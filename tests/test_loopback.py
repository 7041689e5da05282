import numpy as np
import pytest

from bfsverify.catalog import cycle_graph, random_graph
from bfsverify.loopback import LoopbackBinding, frontier_bfs
from bfsverify.model import parity_mask
from bfsverify.oracle import check_predecessors
from bfsverify.reference import reference_bfs
from bfsverify.service import (CsrTopology, Status, TopologyKind, TraversalConfig, ValueType,
                               load_binding)


def _topology(g):
    return CsrTopology(g.n, g.nnz, g.row_offsets, g.column_indices)


@pytest.fixture
def binding():
    return LoopbackBinding()


@pytest.fixture
def handle(binding):
    status, h = binding.create()
    assert status == Status.SUCCESS
    return h


def _ready_graph(binding, handle, g, types=(ValueType.INT32, ValueType.INT32)):
    status, gh = binding.create_graph(handle)
    assert status == Status.SUCCESS
    assert binding.set_graph_structure(handle, gh, _topology(g), TopologyKind.CSR_32) == Status.SUCCESS
    assert binding.allocate_vertex_data(handle, gh, list(types)) == Status.SUCCESS
    return gh


@pytest.mark.parametrize("use_mask", [False, True])
@pytest.mark.parametrize("undirected", [False, True])
def test_frontier_bfs_agrees_with_reference(use_mask, undirected):
    g = random_graph(400, 3, seed=9)
    mask = parity_mask(g.nnz) if use_mask else None
    rng = np.random.default_rng(0)
    for source in (0, 123, 399):
        dist, pred = frontier_bfs(g.row_offsets, g.column_indices, g.n, source,
                                  mask=mask, undirected=undirected, rng=rng)
        expected = reference_bfs(g, source, mask, undirected)
        assert dist.tolist() == expected.tolist()
        check_predecessors(expected, pred)


def test_traversal_writes_both_slots(binding, handle):
    g = cycle_graph(16)
    gh = _ready_graph(binding, handle, g)
    cfg = TraversalConfig(distance_slot=0, predecessor_slot=1)
    assert binding.traversal(handle, gh, 0, cfg) == Status.SUCCESS
    dist = np.empty(16, dtype=np.int32)
    pred = np.empty(16, dtype=np.int32)
    assert binding.get_vertex_data(handle, gh, dist, 0) == Status.SUCCESS
    assert binding.get_vertex_data(handle, gh, pred, 1) == Status.SUCCESS
    assert dist.tolist() == list(range(16))
    assert pred.tolist() == [-1] + list(range(15))


def test_status_codes_for_misuse(binding, handle):
    g = cycle_graph(8)
    status, gh = binding.create_graph(handle)
    cfg = TraversalConfig(distance_slot=0)
    assert binding.traversal(handle, gh, 0, cfg) == Status.NOT_INITIALIZED
    assert binding.set_graph_structure(handle, gh, _topology(g), TopologyKind.CSR_32) == Status.SUCCESS
    assert binding.set_graph_structure(handle, gh, _topology(g), TopologyKind.CSR_32) == Status.INVALID_VALUE
    assert binding.traversal(handle, gh, 0, cfg) == Status.NOT_INITIALIZED
    assert binding.allocate_vertex_data(handle, gh, [ValueType.FLOAT32, ValueType.INT32]) == Status.SUCCESS
    assert binding.traversal(handle, gh, 0, cfg) == Status.TYPE_NOT_SUPPORTED
    assert binding.traversal(handle, gh, 0, TraversalConfig(distance_slot=5)) == Status.INVALID_VALUE
    assert binding.traversal(handle, gh, 8, TraversalConfig(distance_slot=1)) == Status.INVALID_VALUE
    assert binding.traversal(handle, gh, 0, TraversalConfig(distance_slot=1, mask_slot=0)) == Status.INVALID_VALUE
    assert binding.get_vertex_data(handle, gh, np.empty(3, dtype=np.int32), 1) == Status.INVALID_VALUE
    assert binding.destroy_graph(handle, gh) == Status.SUCCESS
    assert binding.destroy_graph(handle, gh) == Status.INVALID_VALUE


def test_csc_structure_is_accepted_but_not_traversable(binding, handle):
    g = cycle_graph(8)
    status, gh = binding.create_graph(handle)
    assert binding.set_graph_structure(handle, gh, _topology(g), TopologyKind.CSC_32) == Status.SUCCESS
    assert binding.allocate_vertex_data(handle, gh, [ValueType.INT32]) == Status.SUCCESS
    status = binding.traversal(handle, gh, 0, TraversalConfig(distance_slot=0))
    assert status == Status.GRAPH_TYPE_NOT_SUPPORTED


def test_memory_accounting(binding, handle):
    free0, total = binding.memory_info()
    assert free0 == total
    g = cycle_graph(100)
    gh = _ready_graph(binding, handle, g)
    free1, _ = binding.memory_info()
    assert free0 - free1 == 4 * (101 + 100) + 2 * 4 * 100
    binding.traversal(handle, gh, 0, TraversalConfig(distance_slot=0))
    assert binding.memory_info()[0] == free1
    binding.destroy_graph(handle, gh)
    assert binding.memory_info()[0] == free0


def test_leak_knob_retains_memory():
    binding = LoopbackBinding(leak_bytes_per_call=1000)
    _, h = binding.create()
    gh = _ready_graph(binding, h, cycle_graph(10))
    before = binding.memory_info()[0]
    for _ in range(3):
        binding.traversal(h, gh, 0, TraversalConfig(distance_slot=0))
    assert before - binding.memory_info()[0] == 3000


def test_allocation_fails_past_capacity():
    binding = LoopbackBinding(capacity_bytes=64)
    _, h = binding.create()
    _, gh = binding.create_graph(h)
    g = cycle_graph(100)
    assert binding.set_graph_structure(h, gh, _topology(g), TopologyKind.CSR_32) == Status.ALLOC_FAILED


def test_load_binding():
    b = load_binding("bfsverify.loopback:LoopbackBinding", seed=1)
    assert isinstance(b, LoopbackBinding)
    with pytest.raises(ValueError):
        load_binding("bfsverify.loopback")
    with pytest.raises(ValueError):
        load_binding("bfsverify.loopback:Missing")
