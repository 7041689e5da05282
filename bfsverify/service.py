# bfsverify/service.py
"""
Request/response contract of the traversal service under test.

The verification engine talks to a service only through a *binding*: an
object with the status-returning calls below. A binding for a native library
wraps its C API; ``bfsverify.loopback`` is an in-process one. Handles are
opaque; ``None`` plays the role of a null handle / null pointer.
"""
from __future__ import annotations

import importlib
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

from .errors import ServiceCallFailed

__all__ = [
    "Status", "TopologyKind", "ValueType", "CsrTopology", "TraversalConfig",
    "TraversalBinding", "load_binding", "status_name", "expect_success",
]


class Status(IntEnum):
    SUCCESS = 0
    NOT_INITIALIZED = 1
    ALLOC_FAILED = 2
    INVALID_VALUE = 3
    ARCH_MISMATCH = 4
    MAPPING_ERROR = 5
    EXECUTION_FAILED = 6
    INTERNAL_ERROR = 7
    TYPE_NOT_SUPPORTED = 8
    NOT_CONVERGED = 9
    GRAPH_TYPE_NOT_SUPPORTED = 10


class TopologyKind(IntEnum):
    CSR_32 = 0
    CSC_32 = 1
    COO_32 = 2


class ValueType(IntEnum):
    INT32 = 0
    FLOAT32 = 1
    FLOAT64 = 2


@dataclass(frozen=True, eq=False)
class CsrTopology:
    n: int
    nnz: int
    offsets: np.ndarray           # row offsets (CSR) or column offsets (CSC)
    indices: np.ndarray


@dataclass(frozen=True)
class TraversalConfig:
    distance_slot: Optional[int] = None
    predecessor_slot: Optional[int] = None
    mask_slot: Optional[int] = None
    undirected: bool = False


@runtime_checkable
class TraversalBinding(Protocol):
    def create(self) -> Tuple[Status, Any]: ...
    def destroy(self, handle: Any) -> Status: ...
    def create_graph(self, handle: Any) -> Tuple[Status, Any]: ...
    def destroy_graph(self, handle: Any, graph: Any) -> Status: ...
    def set_graph_structure(self, handle: Any, graph: Any, topology: CsrTopology,
                            kind: TopologyKind) -> Status: ...
    def allocate_vertex_data(self, handle: Any, graph: Any,
                             types: Sequence[ValueType]) -> Status: ...
    def allocate_edge_data(self, handle: Any, graph: Any,
                           types: Sequence[ValueType]) -> Status: ...
    def set_edge_data(self, handle: Any, graph: Any, values: np.ndarray, slot: int) -> Status: ...
    def traversal(self, handle: Any, graph: Any, source: Optional[int],
                  config: TraversalConfig) -> Status: ...
    def get_vertex_data(self, handle: Any, graph: Any, out: np.ndarray, slot: int) -> Status: ...
    def synchronize(self) -> None: ...


def load_binding(spec: str, **kwargs) -> TraversalBinding:
    """Instantiate a binding from a ``"package.module:Factory"`` string."""
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"binding spec must look like 'module:attr', got {spec!r}")
    factory = getattr(importlib.import_module(module_name), attr, None)
    if factory is None:
        raise ValueError(f"module {module_name!r} has no attribute {attr!r}")
    binding = factory(**kwargs)
    if not isinstance(binding, TraversalBinding):
        raise TypeError(f"{spec} does not implement the traversal binding calls")
    return binding


def status_name(status: Any) -> str:
    try:
        return Status(status).name
    except ValueError:
        return f"status {status!r}"


def expect_success(status: Status, what: str, **context) -> None:
    if status != Status.SUCCESS:
        raise ServiceCallFailed(f"{what} returned {status_name(status)}",
                                status=status, **context)
