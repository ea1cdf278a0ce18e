from __future__ import annotations

from typing import Dict, FrozenSet, Hashable, Iterable, List, Mapping, Optional, Tuple

import networkx as nx
import numpy as np

from treeclimb.errors import InvalidNode


# ============================================================
# PosetTree (NetworkX.DiGraph subclass)
# ============================================================


class PosetTree(nx.DiGraph):
    """Directed rooted tree with integer node identifiers.

    The class augments ``networkx.DiGraph`` with the read-only queries needed
    to evaluate candidate levels of a tree:

    * the root (in-degree 0) is tracked and can be retrieved via :meth:`root`.
    * leaves carry ``is_leaf=True`` and an optional ``label`` attribute so
      that entity names from a testing routine can be translated back to
      node ids (:meth:`node_for_labels`).
    * :meth:`find_descendants` and :meth:`root_to_leaf_paths` answer the
      subtree and path questions asked by the pseudo-leaf and branch
      accounting code.

    Edges always point from parent to child. The tree must not be mutated
    once queries have been issued: descendant sets and paths are cached on
    first use.
    """

    # ---------------- Constructors ----------------

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._descendants: Optional[Dict[int, FrozenSet[int]]] = None
        self._paths: Optional[List[Tuple[int, ...]]] = None

    @classmethod
    def from_edges(
        cls,
        edges: Iterable[Tuple[int, int]],
        labels: Optional[Mapping[int, str]] = None,
    ) -> "PosetTree":
        """Build a tree from ``(parent, child)`` pairs.

        Parameters
        ----------
        edges
            Iterable of ``(parent, child)`` pairs, for example the rows of an
            ``ape::phylo`` edge matrix. A ``(n, 2)`` integer array works too.
        labels
            Optional mapping ``node_id -> label``. Leaves without an entry are
            labelled with their id.

        Returns
        -------
        PosetTree
            Validated tree with ``is_leaf`` and ``label`` node attributes and
            the root stored in ``graph["root"]``.
        """
        G = cls()
        for parent, child in np.asarray(list(edges)).reshape(-1, 2).tolist():
            G.add_edge(_as_node_id(parent), _as_node_id(child))
        G._finalize(labels)
        return G

    @classmethod
    def from_parent_map(
        cls,
        parents: Mapping[int, Optional[int]],
        labels: Optional[Mapping[int, str]] = None,
    ) -> "PosetTree":
        """Build a tree from a ``child -> parent`` mapping.

        The root maps to ``None``. Nodes that never appear as keys but are
        referenced as parents are added as internal nodes.
        """
        G = cls()
        for child, parent in parents.items():
            G.add_node(_as_node_id(child))
            if parent is not None:
                G.add_edge(_as_node_id(parent), _as_node_id(child))
        G._finalize(labels)
        return G

    def _finalize(self, labels: Optional[Mapping[int, str]]) -> None:
        if self.number_of_nodes() == 0:
            raise ValueError("Tree has no nodes")
        multi_parent = [n for n, d in self.in_degree() if d > 1]
        if multi_parent:
            raise ValueError(f"Nodes with more than one parent: {sorted(multi_parent)}")
        roots = [n for n, d in self.in_degree() if d == 0]
        if len(roots) != 1:
            raise ValueError(f"Expected one root, got {sorted(roots)}")
        if not nx.is_arborescence(self):
            raise ValueError("Edges do not form a rooted tree")
        self.graph["root"] = roots[0]

        labels = labels or {}
        for n in self.nodes:
            is_leaf = self.out_degree(n) == 0
            self.nodes[n]["is_leaf"] = is_leaf
            if n in labels:
                self.nodes[n]["label"] = str(labels[n])
            elif is_leaf:
                self.nodes[n]["label"] = str(n)
        self._descendants = None
        self._paths = None

    # ---------------- Poset helpers ----------------

    def root(self) -> int:
        """Return the cached root node, discovering it if necessary."""
        r = self.graph.get("root")
        if r is None:
            roots = [u for u, d in self.in_degree() if d == 0]
            if len(roots) != 1:
                raise ValueError(f"Expected one root, got {roots}")
            r = roots[0]
            self.graph["root"] = r
        return r

    def _check(self, node: Hashable) -> int:
        if node not in self:
            raise InvalidNode(node)
        return node

    def is_leaf(self, node: int) -> bool:
        """Check if a node is a leaf."""
        self._check(node)
        is_leaf_attr = self.nodes[node].get("is_leaf")
        if is_leaf_attr is not None:
            return bool(is_leaf_attr)
        return self.out_degree(node) == 0

    def all_nodes(self, only_leaf: bool = False) -> List[int]:
        """Return node ids in ascending order, optionally leaves only."""
        nodes = sorted(self.nodes)
        if only_leaf:
            return [n for n in nodes if self.is_leaf(n)]
        return nodes

    def parent(self, node: int) -> Optional[int]:
        """Return the parent of ``node`` (``None`` for the root)."""
        self._check(node)
        return next(iter(self.predecessors(node)), None)

    def _descendant_sets(self) -> Dict[int, FrozenSet[int]]:
        """Map every node to all of its descendants, itself included."""
        if self._descendants is None:
            desc_sets: Dict[int, FrozenSet[int]] = {}
            # process leaves first (reverse topological order)
            for node in reversed(list(nx.topological_sort(self))):
                child_sets = [desc_sets[c] for c in self.successors(node)]
                desc_sets[node] = frozenset([node]).union(*child_sets)
            self._descendants = desc_sets
        return self._descendants

    def find_descendants(
        self,
        nodes: Iterable[int],
        only_leaf: bool = True,
        include_self: bool = False,
    ) -> Dict[int, FrozenSet[int]]:
        """Collect the descendants of each node in ``nodes``.

        Parameters
        ----------
        nodes
            Node ids to query.
        only_leaf
            Keep leaves only (default ``True``).
        include_self
            Keep the queried node itself when it qualifies. A leaf queried with
            ``only_leaf=True`` and ``include_self=False`` has no descendants.

        Returns
        -------
        dict[int, frozenset]
            ``node -> descendants`` in the order the nodes were given.

        Raises
        ------
        InvalidNode
            If any id is not in the tree.
        """
        desc_sets = self._descendant_sets()
        out: Dict[int, FrozenSet[int]] = {}
        for node in nodes:
            self._check(node)
            members = desc_sets[node]
            if not include_self:
                members = members - {node}
            if only_leaf:
                members = frozenset(m for m in members if self.is_leaf(m))
            out[node] = members
        return out

    def root_to_leaf_paths(self) -> List[Tuple[int, ...]]:
        """Return one path per leaf, ordered by leaf id.

        Each path starts at the leaf and walks parent by parent up to the
        root, so ``path[k]`` is ``k`` steps above the leaf.
        """
        if self._paths is None:
            paths = []
            for leaf in self.all_nodes(only_leaf=True):
                path = [leaf]
                parent = self.parent(leaf)
                while parent is not None:
                    path.append(parent)
                    parent = self.parent(parent)
                paths.append(tuple(path))
            self._paths = paths
        return list(self._paths)

    def leaf_parents(self) -> Dict[int, int]:
        """Map each leaf to the node one step up its root-to-leaf path.

        A tree consisting of a single node maps the root leaf to itself.
        """
        return {path[0]: path[1] if len(path) > 1 else path[0] for path in self.root_to_leaf_paths()}

    def node_for_labels(self, labels: Iterable[str]) -> List[int]:
        """Translate node labels into node ids.

        Labels are matched against the ``label`` attribute first; a label that
        spells out an existing integer id (``"14"``) or uses the ``alias_14``
        convention resolves to that id.
        """
        by_label: Dict[str, int] = {}
        for n in self.all_nodes():
            lbl = self.nodes[n].get("label")
            if lbl is not None:
                by_label.setdefault(str(lbl), n)

        out = []
        for label in labels:
            key = str(label)
            if key in by_label:
                out.append(by_label[key])
                continue
            candidate = key[len("alias_"):] if key.startswith("alias_") else key
            try:
                node = int(candidate)
            except ValueError:
                raise InvalidNode(label, f"Label {label!r} does not match any node") from None
            out.append(self._check(node))
        return out

    def prepare(self) -> "PosetTree":
        """Fill the descendant and path caches.

        Called before the tree is shared between worker threads so that no
        worker populates a cache concurrently.
        """
        self._descendant_sets()
        self.root_to_leaf_paths()
        return self


def _as_node_id(value) -> int:
    if isinstance(value, (bool, np.bool_)):
        raise ValueError(f"Node identifiers must be integers, got {value!r}")
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return int(value)
    raise ValueError(f"Node identifiers must be integers, got {value!r}")


__all__ = ["PosetTree"]
