# -*- coding: utf-8 -*-
"""
cartpy.tree
===========

This module grows binary CART classification trees with the Gini criterion
and classifies new vectors with them.  It exposes two layers:

* :func:`build_tree` trains on a raw dataset (features followed by a 0/1
  label column) and a list of candidate features, and returns an immutable
  :class:`DecisionTree`.
* :class:`CARTClassifier` wraps the builder in a scikit‑learn–like API that
  accepts any two class labels and adds rule tracing, rule export, pretty
  printing and Graphviz export.

Trees are stored as an arena: a tuple of :class:`Leaf` and :class:`Decision`
nodes in which a decision refers to its children by position.  Children are
always created before their parent, so the root is the last node.  Building,
prediction and the export helpers walk the arena with explicit stacks, so the
depth of a tree is not bounded by the interpreter's recursion limit.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, Sequence
import logging
import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin

from ._exceptions import (
    DegenerateSplitError,
    EmptyDatasetError,
    InvalidFeatureIndexError,
    InvalidLabelError,
)
from .splitter import _as_dataset, _check_feature, find_best_split, partition

logger = logging.getLogger(__name__)

_UNSPLITTABLE_POLICIES = ("raise", "majority")


# -----------------------------------------------------------------------------
# Nodes
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Leaf:
    """Terminal node predicting ``label``."""
    label: float


@dataclass(frozen=True)
class Decision:
    """Internal node sending ``x[feature_index] < threshold`` to ``left``.

    ``left`` and ``right`` are positions of the children in
    :attr:`DecisionTree.nodes`.
    """
    feature_index: int
    threshold: float
    left: int
    right: int


@dataclass(frozen=True)
class DecisionTree:
    """A trained tree: the node arena and the position of its root."""
    nodes: tuple
    root: int

    @property
    def n_nodes(self) -> int:
        return len(self.nodes)

    @property
    def n_leaves(self) -> int:
        return sum(isinstance(node, Leaf) for node in self.nodes)

    @property
    def depth(self) -> int:
        """Number of decisions on the longest root‑to‑leaf path."""
        deepest = 0
        stack = [(self.root, 0)]
        while stack:
            idx, d = stack.pop()
            node = self.nodes[idx]
            if isinstance(node, Decision):
                stack.append((node.left, d + 1))
                stack.append((node.right, d + 1))
            else:
                deepest = max(deepest, d)
        return deepest

    def predict_one(self, x) -> float:
        """
        Classify a single feature vector.

        Starting at the root, move left when ``x[feature_index] < threshold``
        and right otherwise, until a leaf is reached.

        Raises
        ------
        InvalidFeatureIndexError
            If ``x`` is too short for a feature tested on its path.
        """
        node = self.nodes[self.root]
        while isinstance(node, Decision):
            if node.feature_index >= len(x):
                raise InvalidFeatureIndexError(
                    f"vector of length {len(x)} has no feature {node.feature_index}")
            node = self.nodes[node.left if x[node.feature_index] < node.threshold
                              else node.right]
        return node.label

    def predict(self, X) -> np.ndarray:
        X = np.asarray(X, dtype=float)
        if X.ndim != 2:
            raise ValueError("X must be a 2-D array of feature vectors")
        return np.array([self.predict_one(x) for x in X], dtype=float)

    def paths(self) -> Iterator[tuple[list[tuple[int, bool, float]], float]]:
        """
        Yield ``(conditions, label)`` for every leaf, left subtrees first.

        Each condition is ``(feature_index, goes_left, threshold)`` where
        ``goes_left`` means ``x[feature_index] < threshold``.
        """
        stack = [(self.root, [])]
        while stack:
            idx, conds = stack.pop()
            node = self.nodes[idx]
            if isinstance(node, Leaf):
                yield conds, node.label
                continue
            f, thr = node.feature_index, node.threshold
            stack.append((node.right, conds + [(f, False, thr)]))
            stack.append((node.left, conds + [(f, True, thr)]))


# -----------------------------------------------------------------------------
# Builder
# -----------------------------------------------------------------------------
def _majority_label(labels: np.ndarray) -> float:
    # np.unique sorts, argmax keeps the first maximum: lower labels win ties.
    values, counts = np.unique(labels, return_counts=True)
    return float(values[np.argmax(counts)])


def build_tree(dataset, features: Sequence[int], *, on_unsplittable: str = "raise") -> DecisionTree:
    """
    Grow a CART tree on ``dataset`` using the Gini criterion.

    Every node is resolved in this order:

    1. all labels equal the first row's label: a :class:`Leaf` with that label;
    2. ``features`` is empty: a leaf with the majority label, the lower label
       winning ties;
    3. otherwise the best split over *all* of ``features`` is applied and both
       halves are grown the same way.  A feature used by a node stays a
       candidate for its descendants.

    Parameters
    ----------
    dataset : array-like of shape (n_rows, n_features + 1)
        Training rows, class label (``0``/``1``) in the last column.
    features : sequence of int
        Candidate feature indices, each in ``[0, n_features)``.
    on_unsplittable : {"raise", "majority"}, default="raise"
        What to do with a mixed subset whose rows are identical on every
        candidate feature.  ``"raise"`` raises :class:`DegenerateSplitError`,
        ``"majority"`` closes it with a majority‑vote leaf.

    Returns
    -------
    DecisionTree

    Raises
    ------
    ValueError
        If the dataset holds NaN or infinite values.
    EmptyDatasetError
        If a node receives no rows.
    InvalidFeatureIndexError
        If a candidate feature index is out of range.
    InvalidLabelError
        If a split is searched on labels other than ``0``/``1``.
    DegenerateSplitError
        If a split leaves a side empty or a subset cannot be split.
    """
    if on_unsplittable not in _UNSPLITTABLE_POLICIES:
        raise ValueError(f"on_unsplittable must be one of {_UNSPLITTABLE_POLICIES}")
    data = _as_dataset(dataset)
    n_features = data.shape[1] - 1
    features = tuple(_check_feature(f, n_features) for f in features)

    nodes: list = []
    done: list[int] = []  # positions of finished subtrees, in completion order
    # Work items: ("grow", rows, depth) or ("join", split). A join runs after
    # both children of its split have finished.
    stack: list[tuple] = [("grow", data, 0)]
    while stack:
        item = stack.pop()
        if item[0] == "join":
            split = item[1]
            right = done.pop()
            left = done.pop()
            nodes.append(Decision(split.feature_index, split.threshold, left, right))
            done.append(len(nodes) - 1)
            continue

        _, rows, depth = item
        if rows.shape[0] == 0:
            raise EmptyDatasetError(f"node at depth {depth} received no rows")
        labels = rows[:, -1]
        if np.all(labels == labels[0]):
            nodes.append(Leaf(float(labels[0])))
            done.append(len(nodes) - 1)
            continue
        if not features:
            nodes.append(Leaf(_majority_label(labels)))
            done.append(len(nodes) - 1)
            continue

        split = find_best_split(rows, features)
        if split is None:
            if on_unsplittable == "raise":
                raise DegenerateSplitError(
                    f"{rows.shape[0]} rows at depth {depth} share every candidate "
                    f"feature value but not their label")
            logger.debug("No split at depth %d over %d rows; using majority vote",
                         depth, rows.shape[0])
            nodes.append(Leaf(_majority_label(labels)))
            done.append(len(nodes) - 1)
            continue

        left_rows, right_rows = partition(rows, split.feature_index, split.threshold)
        if left_rows.shape[0] == 0 or right_rows.shape[0] == 0:
            raise DegenerateSplitError(
                f"split on feature {split.feature_index} at {split.threshold!r} "
                f"leaves one side empty")
        logger.debug("Split at depth %d: X[%d] < %.6g (gini=%.6f, %d|%d rows)",
                     depth, split.feature_index, split.threshold, split.impurity,
                     left_rows.shape[0], right_rows.shape[0])
        stack.append(("join", split))
        stack.append(("grow", right_rows, depth + 1))
        stack.append(("grow", left_rows, depth + 1))

    return DecisionTree(nodes=tuple(nodes), root=done.pop())


# -----------------------------------------------------------------------------
# Classifier
# -----------------------------------------------------------------------------
class CARTClassifier(ClassifierMixin, BaseEstimator):
    """
    Binary CART decision tree classifier (Gini criterion, unpruned).

    The tree is grown until every leaf is pure.  Leaves are only impure when
    the candidate feature list is empty or, with
    ``on_unsplittable="majority"``, when identical feature vectors carry
    different labels.

    Parameters
    ----------
    features : list[int] or None, default=None
        Indices of the columns that may be used for splitting, in the order
        in which ties between equally good splits are resolved.  ``None``
        means every column, left to right.
    on_unsplittable : {"raise", "majority"}, default="raise"
        Behaviour for a mixed node whose rows cannot be separated by any
        candidate feature.  See :func:`build_tree`.
    feature_names : list[str] or None, default=None
        Optional feature names used by the rule/graph exports.

    Attributes
    ----------
    tree_ : DecisionTree
        The fitted tree; its leaf labels are positions in ``classes_``.
    classes_ : ndarray of shape (n_classes,)
        Sorted class labels seen in ``fit`` (at most two).
    n_features_in_ : int
        Number of features seen in ``fit``.
    feature_names_ : list[str]
        Feature names used by the exports.
    """

    def __init__(
        self,
        *,
        features: list[int] | None = None,
        on_unsplittable: str = "raise",
        feature_names: list[str] | None = None,
    ):
        self.features = features
        self.on_unsplittable = on_unsplittable
        self.feature_names = feature_names

    def fit(self, X, y, feature_names=None):
        """
        Build the tree from training data.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Finite numeric training vectors.
        y : array-like of shape (n_samples,)
            Class labels; at most two distinct values.
        feature_names : list[str], optional
            Overrides the names given at construction time.

        Returns
        -------
        self
        """
        X = np.asarray(X, dtype=float)
        y = np.asarray(y)
        if X.ndim != 2:
            raise ValueError("X must be a 2-D array")
        if y.ndim != 1 or len(y) != len(X):
            raise ValueError("y must be 1-D with one label per row of X")
        if len(X) == 0:
            raise EmptyDatasetError("cannot fit on an empty dataset")
        if not np.all(np.isfinite(X)):
            raise ValueError("X must not contain NaN or infinite values")
        if self.on_unsplittable not in _UNSPLITTABLE_POLICIES:
            raise ValueError(f"on_unsplittable must be one of {_UNSPLITTABLE_POLICIES}")

        n_features = X.shape[1]
        names = feature_names if feature_names is not None else self.feature_names
        if names is not None:
            if len(names) != n_features:
                raise ValueError("feature_names length must match X.shape[1]")
            self.feature_names_ = list(names)
        else:
            self.feature_names_ = [f"X[{i}]" for i in range(n_features)]

        self.classes_ = np.unique(y)
        if len(self.classes_) > 2:
            raise InvalidLabelError(
                f"binary classification only; got {len(self.classes_)} classes")
        codes = np.searchsorted(self.classes_, y).astype(float)

        features = range(n_features) if self.features is None else self.features
        data = np.column_stack([X, codes])
        self.tree_ = build_tree(data, features, on_unsplittable=self.on_unsplittable)
        self.n_features_in_ = n_features
        logger.info("Fitted CART tree on %d rows: %d nodes, %d leaves, depth %d",
                    len(X), self.tree_.n_nodes, self.tree_.n_leaves, self.tree_.depth)
        return self

    def predict(self, X):
        """
        Predict class labels for the provided samples.

        Raises
        ------
        ValueError
            If the estimator has not been fitted.
        InvalidFeatureIndexError
            If ``X`` does not have ``n_features_in_`` columns.
        """
        X = self._check_input(X)
        codes = self.tree_.predict(X).astype(int)
        return self.classes_[codes]

    def predict_rule(self, X, feature_names=None):
        """
        Return the decision rule (antecedent) followed by each input row.

        Each string is the conjunction of the conditions met on the way from
        the root to the leaf that classifies the row; ``"<root>"`` when the
        tree is a single leaf.
        """
        X = self._check_input(X)
        fn = self._names(feature_names)
        tree = self.tree_
        rules = []
        for x in X:
            parts = []
            node = tree.nodes[tree.root]
            while isinstance(node, Decision):
                name = fn[node.feature_index]
                if x[node.feature_index] < node.threshold:
                    parts.append(f"{name} < {node.threshold:.4f}")
                    node = tree.nodes[node.left]
                else:
                    parts.append(f"{name} >= {node.threshold:.4f}")
                    node = tree.nodes[node.right]
            rules.append(" AND ".join(parts) if parts else "<root>")
        return rules

    def export_rules(self, *, feature_names=None, class_names=None):
        """
        Export every root‑to‑leaf path as ``"<antecedent> => <class>"``.

        Parameters
        ----------
        feature_names : list[str], optional
            Names for the input features.
        class_names : list[str], optional
            Names for the classes, ordered like ``classes_``.

        Returns
        -------
        list[str]
            One rule per leaf, left subtrees first.
        """
        self._check_fitted()
        fn = self._names(feature_names)
        rules: list[str] = []
        for conds, label in self.tree_.paths():
            parts = [f"{fn[f]} {'<' if goes_left else '>='} {thr:.4f}"
                     for f, goes_left, thr in conds]
            body = " AND ".join(parts) if parts else "<root>"
            rules.append(f"{body} => {self._class_name(label, class_names)}")
        return rules

    def export_graphviz(self, filename: str | None = None, *, feature_names=None,
                        class_names=None, format: str = "png") -> str:
        """
        Export the tree structure in Graphviz format.

        ``format="dot"`` writes the DOT source directly and does not need the
        Graphviz binaries.  Other formats are rendered with the ``dot``
        command; if that fails a ``.dot`` file is written instead.

        Parameters
        ----------
        filename : str or None, default=None
            Basename of the output file.  If None, the DOT source is returned
            and nothing is written.
        feature_names : list[str], optional
            Custom feature names.
        class_names : list[str], optional
            Custom class names, ordered like ``classes_``.
        format : str, default="png"
            Graphviz output format (``'png'``, ``'pdf'``, ``'svg'``, ``'dot'``...).

        Returns
        -------
        str
            Path to the written file, or the DOT source if ``filename`` is None.
        """
        self._check_fitted()
        try:
            import graphviz
        except ImportError:
            raise RuntimeError("Graphviz is required for export_graphviz but not installed.")
        fn = self._names(feature_names)
        dot = graphviz.Digraph(format=format)
        for idx, node in enumerate(self.tree_.nodes):
            if isinstance(node, Leaf):
                dot.node(str(idx), f"class={self._class_name(node.label, class_names)}",
                         shape="box", style="filled", color="lightgrey")
            else:
                dot.node(str(idx), f"{fn[node.feature_index]} < {node.threshold:.4f}",
                         shape="ellipse", style="filled", color="lightblue")
                dot.edge(str(idx), str(node.left), label="True")
                dot.edge(str(idx), str(node.right), label="False")

        if filename is None:
            return dot.source
        if format.lower() == "dot":
            path = f"{filename}.dot"
            dot.save(path)
            return path
        try:
            dot.render(filename, cleanup=True)
            return f"{filename}.{format}"
        except graphviz.ExecutableNotFound:
            logger.warning("Graphviz 'dot' executable not found; writing %s.dot", filename)
            fallback_path = f"{filename}.dot"
            dot.save(fallback_path)
            return fallback_path

    def print_tree(self, feature_names=None, class_names=None):
        """Pretty‑print the tree to ``stdout`` as nested if/else blocks."""
        self._check_fitted()
        fn = self._names(feature_names)
        tree = self.tree_
        # Items are either a node position to render or a literal line.
        stack: list = [(tree.root, "")]
        while stack:
            idx, indent = stack.pop()
            if isinstance(idx, str):
                print(f"{indent}{idx}")
                continue
            node = tree.nodes[idx]
            if isinstance(node, Leaf):
                print(f"{indent}Predict {self._class_name(node.label, class_names)}")
                continue
            print(f"{indent}if {fn[node.feature_index]} < {node.threshold:.4f}:")
            stack.append((node.right, indent + "  "))
            stack.append(("else:", indent))
            stack.append((node.left, indent + "  "))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _check_fitted(self):
        if getattr(self, "tree_", None) is None:
            raise ValueError("Estimator not fitted. Call fit(...) first.")

    def _check_input(self, X):
        self._check_fitted()
        X = np.asarray(X, dtype=float)
        if X.ndim != 2:
            raise ValueError("X must be a 2-D array")
        if X.shape[1] != self.n_features_in_:
            raise InvalidFeatureIndexError(
                f"X has {X.shape[1]} features, but the tree was fitted on {self.n_features_in_}")
        return X

    def _names(self, feature_names):
        if feature_names is not None:
            return list(feature_names)
        return self.feature_names_

    def _class_name(self, code: float, class_names) -> str:
        i = int(code)
        if class_names is not None:
            return str(class_names[i])
        return str(self.classes_[i])
