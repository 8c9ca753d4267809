"""EditDistanceEngine: ordered tree edit distance with a witnessing mapping.

Implements the classical Zhang–Shasha algorithm over two ``LabeledNode``
trees:

- Nodes are numbered 1..n in post-order; ``lmld[k]`` is the post-order number
  of the leftmost leaf descendant of node ``k``.
- Keyroots are the highest nodes sharing each ``lmld`` value.  For every
  keyroot pair a forest-distance table is filled, which also fills the
  subtree-distance table ``treedist`` for every pair on the two leftmost paths.
- The mapping is recovered by re-running the forest table for the root pair
  and backtracking; whenever the optimal step is "match two subtrees that are
  not on the leftmost path" that subtree pair is pushed and resolved the same
  way.

Forest tables are filled one row at a time with numpy.  Inside a row the
insert chain ``fd[x][y - 1] + insert`` is a prefix minimum, so a row is

    fd[x] = P + minimum.accumulate(c - P)

where ``P`` is the running sum of insert costs and ``c`` the best of the
delete and match/subtree terms.  Tree-B keyroots whose subtrees nest no other
keyroot of the same pass are independent for a fixed tree-A keyroot, so they
are stacked along a batch axis and filled together (see ``_keyroot_batches``).

Costs come from a ``CostModel`` (unit insert/delete/relabel by default); they
are evaluated once per node, and once per node pair only for custom relabel
costs.  Backtracking prefers delete, then insert, then match/descend, so
identical inputs always produce identical mappings.

The critical invariant: mapping positions are 1-based post-order indices and
0 means "no counterpart" (a pure insert or delete).
"""

from __future__ import annotations

import numpy as np

from pagestate.algorithm.costs import CostModel, UnitCostModel
from pagestate.algorithm.extractor import LabeledNode

__all__ = ["EditDistanceEngine", "Mapping"]

Mapping = list[tuple[int, int]]

# Tolerance for backtracking equalities under non-integral custom costs.
_EPSILON = 1e-9

# Upper bound on the cells of one batched forest table (32 MB of float64).
_TABLE_CELLS = 4_000_000


class _IndexedTree:
    """Post-order numbering, labels and leftmost-leaf table of one tree."""

    __slots__ = ("keyroots", "labels", "lmld", "size")

    def __init__(self, root: LabeledNode | None) -> None:
        if root is None:
            raise ValueError("Cannot compute an edit distance for a None tree")

        labels: list[str] = [""]  # slot 0 unused, positions are 1-based
        lmld: list[int] = [0]
        seen: set[int] = {id(root)}
        # frame: [node, pending-children iterator, leftmost leaf seen so far]
        stack: list[list] = [[root, iter(root.children), 0]]
        while stack:
            frame = stack[-1]
            child = next(frame[1], None)
            if child is not None:
                if id(child) in seen:
                    raise ValueError("Labeled tree contains a cycle")
                seen.add(id(child))
                stack.append([child, iter(child.children), 0])
                continue
            stack.pop()
            labels.append(frame[0].label)
            index = len(labels) - 1
            leftmost = frame[2] or index
            lmld.append(leftmost)
            if stack and not stack[-1][2]:
                stack[-1][2] = leftmost

        self.labels = labels
        self.lmld = np.asarray(lmld, dtype=np.intp)
        self.size = len(labels) - 1
        highest: dict[int, int] = {}
        for k in range(1, self.size + 1):
            highest[lmld[k]] = k
        self.keyroots = sorted(highest.values())


def _keyroot_batches(tree: _IndexedTree) -> list[tuple[np.ndarray, int]]:
    """Group keyroots into batches that can be filled in one pass.

    A keyroot's level is 0 when its subtree holds no other keyroot, else one
    more than the highest level nested inside it.  Keyroots of one level have
    disjoint subtrees and only depend on lower levels.  Each level is further
    split by table width (power-of-two buckets) so padding stays below half
    of a batched table.  Returns ``(keyroots, max width)`` in level order.
    """
    levels: dict[int, int] = {}
    stack: list[int] = []
    for j in tree.keyroots:
        lj = int(tree.lmld[j])
        level = -1
        while stack and stack[-1] >= lj:
            level = max(level, levels[stack.pop()])
        levels[j] = level + 1
        stack.append(j)

    buckets: dict[tuple[int, int], list[int]] = {}
    for j, level in levels.items():
        width = j - int(tree.lmld[j]) + 1
        buckets.setdefault((level, width.bit_length()), []).append(j)

    batches = []
    for key in sorted(buckets):
        keyroots = np.asarray(buckets[key], dtype=np.intp)
        widths = keyroots - tree.lmld[keyroots] + 1
        batches.append((keyroots, int(widths.max())))
    return batches


class EditDistanceEngine:
    """Minimum-cost ordered tree edit distance (Zhang–Shasha).

    An engine instance keeps the tables of its last computation so that
    ``compute_edit_mapping`` can follow ``compute_edit_distance``.  Use one
    instance per comparison; instances are not shared between threads.

    Example::

        engine = EditDistanceEngine()
        distance = engine.compute_edit_distance(tree_a, tree_b)
        mapping = engine.compute_edit_mapping()   # [(i, j), ...], 0 = none
    """

    def __init__(self, cost_model: CostModel | None = None) -> None:
        self._costs: CostModel = (
            cost_model if cost_model is not None else UnitCostModel()
        )
        self._unit = type(self._costs) is UnitCostModel
        self._tree_a: _IndexedTree | None = None
        self._tree_b: _IndexedTree | None = None
        self._treedist: np.ndarray | None = None
        self._delete_a: np.ndarray | None = None
        self._insert_b: np.ndarray | None = None
        self._codes_a: np.ndarray | None = None
        self._codes_b: np.ndarray | None = None
        self._relabel_rows: dict[int, np.ndarray] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compute_edit_distance(
        self, tree_a: LabeledNode | None, tree_b: LabeledNode | None
    ) -> float:
        """Return the minimum edit cost transforming ``tree_a`` into ``tree_b``.

        Raises:
            ValueError: If either tree is None or contains a cycle.
        """
        self._tree_a = _IndexedTree(tree_a)
        self._tree_b = _IndexedTree(tree_b)
        self._prepare_costs()
        self._treedist = np.zeros((self._tree_a.size + 1, self._tree_b.size + 1))

        batches = _keyroot_batches(self._tree_b)
        for i in self._tree_a.keyroots:
            rows = i - int(self._tree_a.lmld[i]) + 2
            for keyroots, width in batches:
                step = max(1, _TABLE_CELLS // (rows * (width + 1)))
                for start in range(0, len(keyroots), step):
                    self._forest_distance(i, keyroots[start : start + step])

        return float(self._treedist[self._tree_a.size, self._tree_b.size])

    def compute_edit_mapping(self) -> Mapping:
        """Return the mapping witnessing the last computed distance.

        Pairs are ``(position_in_a, position_in_b)`` with 1-based post-order
        positions; 0 on either side marks a delete (``(i, 0)``) or an insert
        (``(0, j)``).  Every node of both trees appears exactly once.

        Raises:
            ValueError: If no distance has been computed yet.
        """
        if self._tree_a is None or self._tree_b is None:
            raise ValueError("compute_edit_distance() must run before the mapping")
        assert self._delete_a is not None and self._insert_b is not None
        tree_a, tree_b = self._tree_a, self._tree_b
        delete_a, insert_b = self._delete_a, self._insert_b
        lmld_a, lmld_b = tree_a.lmld, tree_b.lmld

        mapping: Mapping = []
        pending = [(tree_a.size, tree_b.size)]
        while pending:
            i, j = pending.pop()
            fd = self._forest_distance(i, np.asarray([j], dtype=np.intp))[:, 0, :]
            li = int(lmld_a[i])
            lj = int(lmld_b[j])
            x = i - li + 1
            y = j - lj + 1
            while x > 0 or y > 0:
                di = li + x - 1
                dj = lj + y - 1
                if x > 0 and _same(fd[x, y], fd[x - 1, y] + delete_a[di]):
                    mapping.append((di, 0))
                    x -= 1
                elif y > 0 and _same(fd[x, y], fd[x, y - 1] + insert_b[dj]):
                    mapping.append((0, dj))
                    y -= 1
                elif lmld_a[di] == li and lmld_b[dj] == lj:
                    mapping.append((di, dj))
                    x -= 1
                    y -= 1
                else:
                    # subtree pair off the leftmost paths: resolve it separately
                    pending.append((di, dj))
                    x = int(lmld_a[di]) - li
                    y = int(lmld_b[dj]) - lj

        mapping.reverse()
        return mapping

    def distance_and_mapping(
        self, tree_a: LabeledNode | None, tree_b: LabeledNode | None
    ) -> tuple[float, Mapping]:
        distance = self.compute_edit_distance(tree_a, tree_b)
        return distance, self.compute_edit_mapping()

    # ------------------------------------------------------------------
    # Costs
    # ------------------------------------------------------------------

    def _prepare_costs(self) -> None:
        assert self._tree_a is not None and self._tree_b is not None
        labels_a, labels_b = self._tree_a.labels, self._tree_b.labels
        self._relabel_rows = {}
        if self._unit:
            self._delete_a = np.ones(len(labels_a))
            self._insert_b = np.ones(len(labels_b))
            codes: dict[str, int] = {}
            self._codes_a = np.asarray(
                [-1] + [codes.setdefault(label, len(codes)) for label in labels_a[1:]],
                dtype=np.intp,
            )
            self._codes_b = np.asarray(
                [-2] + [codes.setdefault(label, len(codes)) for label in labels_b[1:]],
                dtype=np.intp,
            )
        else:
            costs = self._costs
            self._delete_a = np.asarray(
                [0.0] + [costs.delete(label) for label in labels_a[1:]], dtype=float
            )
            self._insert_b = np.asarray(
                [0.0] + [costs.insert(label) for label in labels_b[1:]], dtype=float
            )
        self._delete_a[0] = 0.0
        self._insert_b[0] = 0.0

    def _relabel_row(self, di: int) -> np.ndarray:
        """Custom relabel costs of node ``di`` of tree A against all of tree B."""
        row = self._relabel_rows.get(di)
        if row is None:
            assert self._tree_a is not None and self._tree_b is not None
            label_a = self._tree_a.labels[di]
            row = np.asarray(
                [0.0]
                + [self._costs.relabel(label_a, b) for b in self._tree_b.labels[1:]],
                dtype=float,
            )
            self._relabel_rows[di] = row
        return row

    # ------------------------------------------------------------------
    # Forest distance
    # ------------------------------------------------------------------

    def _forest_distance(self, i: int, js: np.ndarray) -> np.ndarray:
        """Fill the forest tables of subtree ``i`` against each subtree in ``js``.

        The subtrees in ``js`` must be disjoint.  Returns an array of shape
        ``(rows, len(js), width + 1)``: row ``x`` stands for the forest of
        nodes ``lmld[i] .. lmld[i] + x - 1`` (row 0 is the empty forest),
        column ``y`` of batch entry ``k`` likewise for subtree ``js[k]``.
        Columns past a subtree's own width are padding and never read.
        Entries that describe two whole subtrees are copied into ``treedist``.
        """
        assert self._tree_a is not None and self._tree_b is not None
        assert self._treedist is not None
        assert self._delete_a is not None and self._insert_b is not None
        tree_a, tree_b, treedist = self._tree_a, self._tree_b, self._treedist

        li = int(tree_a.lmld[i])
        rows = i - li + 2
        ljs = tree_b.lmld[js]
        widths = js - ljs + 1
        width = int(widths.max())
        batch = len(js)

        offsets = np.arange(1, width + 1)
        valid = offsets[None, :] <= widths[:, None]
        dj = np.where(valid, ljs[:, None] + offsets[None, :] - 1, 0)
        ldj = tree_b.lmld[dj]
        on_path_b = valid & (ldj == ljs[:, None])
        back = np.where(valid, ldj - ljs[:, None], 0)
        entry = np.arange(batch)[:, None]

        insert = np.where(valid, self._insert_b[dj], 0.0)
        prefix = np.zeros((batch, width + 1))
        prefix[:, 1:] = np.cumsum(insert, axis=1)
        codes_a = self._codes_a
        codes_b: np.ndarray | None = None
        if self._unit:
            assert codes_a is not None and self._codes_b is not None
            codes_b = self._codes_b[dj]

        fd = np.empty((rows, batch, width + 1))
        fd[0] = prefix
        for x in range(1, rows):
            di = li + x - 1
            ldi = int(tree_a.lmld[di])
            delete = self._delete_a[di]
            previous = fd[x - 1]
            subtree = fd[ldi - li][entry, back] + treedist[di][dj]
            if ldi == li:
                # both prefixes are whole subtrees where tree B is on its path
                if codes_a is not None and codes_b is not None:
                    relabel = (codes_b != codes_a[di]).astype(float)
                else:
                    relabel = self._relabel_row(di)[dj]
                match = np.where(on_path_b, previous[:, :-1] + relabel, subtree)
            else:
                match = subtree
            best = np.empty((batch, width + 1))
            best[:, 0] = previous[:, 0] + delete
            best[:, 1:] = np.minimum(previous[:, 1:] + delete, match)
            fd[x] = np.minimum.accumulate(best - prefix, axis=1) + prefix
            if ldi == li:
                treedist[di, dj[on_path_b]] = fd[x][:, 1:][on_path_b]
        return fd


def _same(value: float, candidate: float) -> bool:
    return abs(value - candidate) <= _EPSILON
