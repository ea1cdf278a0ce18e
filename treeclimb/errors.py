"""Exceptions raised while evaluating candidate levels of a tree."""

from __future__ import annotations


class TreeClimbError(Exception):
    """Base class for all treeclimb errors."""


class ConfigurationError(TreeClimbError, ValueError):
    """Inconsistent or incomplete evaluation inputs.

    Raised for missing column roles, unknown correction methods, p-values
    outside ``[0, 1]`` and tuning-parameter keys that differ across features.
    """


class InvalidNode(TreeClimbError, KeyError):
    """A node identifier (or label) is not part of the tree."""

    def __init__(self, node, message: str | None = None) -> None:
        self.node = node
        super().__init__(message or f"Node {node!r} is not in the tree")

    def __str__(self) -> str:
        return str(self.args[0])


class NoValidCandidate(TreeClimbError, RuntimeError):
    """No candidate level satisfies the leaf-level FDR validity bound."""


__all__ = [
    "TreeClimbError",
    "ConfigurationError",
    "InvalidNode",
    "NoValidCandidate",
]
