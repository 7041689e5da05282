# bfsverify/graphio.py
"""
Reader/writer for CSR graphs in AMGX binary format.

Layout (little endian):
    b"%%NVAMGBinary\\n"
    uint32 flags[9]   is_mtx, is_rhs, is_soln, matrix_format, diag,
                      block_dimx, block_dimy, num_rows, num_nz
    int32  row_offsets[num_rows + 1]
    int32  column_indices[num_nz]
    float64 values[num_nz * block_dimx * block_dimy]

Any short read, bad magic or CSR invariant violation raises MalformedGraph;
no partially read graph is ever returned.
"""
from __future__ import annotations

import io
import pathlib
from typing import BinaryIO, Optional, Tuple, Union

import numpy as np

from .errors import MalformedGraph
from .model import Graph

MAGIC = b"%%NVAMGBinary\n"
_FLAGS = 9
_N_FLAG, _NNZ_FLAG = 7, 8
_BX_FLAG, _BY_FLAG = 5, 6

Source = Union[str, pathlib.Path, bytes, BinaryIO]


def _read_exact(stream: BinaryIO, size: int, what: str, name: str) -> bytes:
    buf = stream.read(size)
    if buf is None or len(buf) != size:
        got = 0 if buf is None else len(buf)
        raise MalformedGraph(f"truncated {what}", graph=name, expected=size, actual=got)
    return buf


def read_header(stream: BinaryIO, name: str = "<stream>") -> Tuple[int, int]:
    """Return (vertex_count, edge_count); leaves the stream at the body."""
    magic = _read_exact(stream, len(MAGIC), "header", name)
    if magic != MAGIC:
        raise MalformedGraph("not an AMGX binary graph", graph=name,
                             expected=MAGIC, actual=magic)
    flags = np.frombuffer(_read_exact(stream, 4 * _FLAGS, "header flags", name), dtype="<u4")
    block = int(flags[_BX_FLAG]) * int(flags[_BY_FLAG])
    if block != 1:
        raise MalformedGraph("graph files must use 1x1 blocks", graph=name,
                             expected=1, actual=block)
    return int(flags[_N_FLAG]), int(flags[_NNZ_FLAG])


def read_body(stream: BinaryIO, n: int, nnz: int,
              name: str = "<stream>") -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return (row_offsets, column_indices, edge_values)."""
    offsets = np.frombuffer(_read_exact(stream, 4 * (n + 1), "row offsets", name), dtype="<i4")
    cols = np.frombuffer(_read_exact(stream, 4 * nnz, "column indices", name), dtype="<i4")
    values = np.frombuffer(_read_exact(stream, 8 * nnz, "edge values", name), dtype="<f8")
    return offsets.copy(), cols.copy(), values.copy()


def _open(src: Source) -> Tuple[BinaryIO, str, bool]:
    if isinstance(src, (bytes, bytearray)):
        return io.BytesIO(bytes(src)), "<bytes>", True
    if isinstance(src, (str, pathlib.Path)):
        path = pathlib.Path(src)
        try:
            return path.open("rb"), str(path), True
        except OSError as e:
            raise MalformedGraph(f"cannot read input graph file: {e.strerror}", graph=str(path)) from e
    return src, getattr(src, "name", "<stream>"), False


def load_graph_file(src: Source, name: Optional[str] = None) -> Graph:
    stream, label, owned = _open(src)
    label = name or label
    try:
        n, nnz = read_header(stream, label)
        offsets, cols, _values = read_body(stream, n, nnz, label)
    finally:
        if owned:
            stream.close()
    return Graph.from_arrays(offsets, cols, n=n, nnz=nnz, name=label)


def graph_to_bytes(graph: Graph, values: Optional[np.ndarray] = None) -> bytes:
    flags = np.zeros(_FLAGS, dtype="<u4")
    flags[0] = 1                          # is_mtx
    flags[_BX_FLAG] = flags[_BY_FLAG] = 1
    flags[_N_FLAG] = graph.n
    flags[_NNZ_FLAG] = graph.nnz
    if values is None:
        values = np.ones(graph.nnz, dtype="<f8")
    out = io.BytesIO()
    out.write(MAGIC)
    out.write(flags.tobytes())
    out.write(np.asarray(graph.row_offsets, dtype="<i4").tobytes())
    out.write(np.asarray(graph.column_indices, dtype="<i4").tobytes())
    out.write(np.asarray(values, dtype="<f8").tobytes())
    return out.getvalue()


def write_graph_file(path: Union[str, pathlib.Path], graph: Graph,
                     values: Optional[np.ndarray] = None) -> pathlib.Path:
    path = pathlib.Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(graph_to_bytes(graph, values))
    return path
