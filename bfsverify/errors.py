# bfsverify/errors.py
"""
Failure taxonomy for traversal verification.

Every failure carries enough context to reproduce it (graph identity, source
vertex, vertex index, iteration) and renders that context into its message.
"""
from __future__ import annotations
from typing import Any, Optional

__all__ = [
    "VerificationError",
    "MalformedGraph",
    "ResourceInsufficient",
    "CorrectnessMismatch",
    "StabilityViolation",
    "ServiceCallFailed",
]


class VerificationError(Exception):
    """Base class; subclasses differ only in what the failure means."""

    def __init__(
        self,
        message: str,
        *,
        graph: Optional[str] = None,
        source: Optional[int] = None,
        vertex: Optional[int] = None,
        expected: Any = None,
        actual: Any = None,
        iteration: Optional[int] = None,
    ):
        self.message = message
        self.graph = graph
        self.source = source
        self.vertex = vertex
        self.expected = expected
        self.actual = actual
        self.iteration = iteration
        super().__init__(self._render())

    def _render(self) -> str:
        parts = [self.message]
        if self.vertex is not None:
            parts.append(f"row #{self.vertex}")
        if self.expected is not None or self.actual is not None:
            parts.append(f"expected={self.expected!r} actual={self.actual!r}")
        if self.graph is not None:
            parts.append(f"graph {self.graph}")
        if self.source is not None:
            parts.append(f"source_vert={self.source}")
        if self.iteration is not None:
            parts.append(f"iteration #{self.iteration}")
        return " | ".join(parts)


class MalformedGraph(VerificationError):
    """Graph file or CSR arrays violate the structural invariants."""


class ResourceInsufficient(VerificationError):
    """Not enough free memory for the graph plus working buffers (scenario is waived)."""

    def __init__(self, message: str, *, free: int = 0, required: int = 0, **kw):
        self.free = free
        self.required = required
        super().__init__(message, **kw)


class CorrectnessMismatch(VerificationError):
    """Computed output disagrees with the reference, or invalid usage was accepted."""


class StabilityViolation(VerificationError):
    """Results drift across repeated calls, or free memory regresses."""


class ServiceCallFailed(VerificationError):
    """A call that has to succeed returned a non-success status."""

    def __init__(self, message: str, *, status: Any = None, **kw):
        self.status = status
        super().__init__(message, **kw)
