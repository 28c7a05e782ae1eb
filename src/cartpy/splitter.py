# -*- coding: utf-8 -*-
"""
cartpy.splitter
===============

Split evaluation for binary CART trees: the Gini impurity of a label vector,
the threshold partition of a dataset and the exhaustive search for the
``(feature, threshold)`` pair with the lowest size‑weighted impurity.

A dataset is a 2‑D float array whose last column holds the class label
(``0`` or ``1``); every other column is a feature.
"""

from __future__ import annotations
from typing import NamedTuple, Sequence
import numpy as np

from ._exceptions import InvalidFeatureIndexError, InvalidLabelError


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _as_dataset(dataset) -> np.ndarray:
    data = np.asarray(dataset, dtype=float)
    if data.ndim != 2 or data.shape[1] < 1:
        raise ValueError("dataset must be a 2-D array with a trailing label column")
    if not np.all(np.isfinite(data)):
        raise ValueError("dataset must not contain NaN or infinite values")
    return data

def _check_labels(labels: np.ndarray) -> None:
    bad = ~np.isin(labels, (0.0, 1.0))
    if bad.any():
        raise InvalidLabelError(
            f"class labels must be 0 or 1, got {labels[bad][0]!r}")

def _check_feature(feature_index, n_features: int) -> int:
    f = int(feature_index)
    if f != feature_index or not 0 <= f < n_features:
        raise InvalidFeatureIndexError(
            f"feature index {feature_index!r} is outside [0, {n_features})")
    return f

def _gini_from_counts(ones, total):
    # Same operation order as gini_impurity so that results agree bit for bit.
    p1 = ones / total
    p0 = (total - ones) / total
    return 1.0 - p0 * p0 - p1 * p1


# -----------------------------------------------------------------------------
# Impurity / partition
# -----------------------------------------------------------------------------
def gini_impurity(labels) -> float:
    """
    Gini impurity ``1 - (p0**2 + p1**2)`` of a sequence of binary labels.

    Parameters
    ----------
    labels : array-like of shape (n,)
        Class labels, each exactly ``0`` or ``1``.

    Returns
    -------
    float
        A value in ``[0, 0.5]``; ``0.0`` for an empty sequence.

    Raises
    ------
    InvalidLabelError
        If any label is not ``0`` or ``1``.
    """
    y = np.asarray(labels, dtype=float).ravel()
    n = y.shape[0]
    if n == 0:
        return 0.0
    _check_labels(y)
    ones = float(np.count_nonzero(y == 1.0))
    return float(_gini_from_counts(ones, float(n)))

def partition(dataset, feature_index: int, threshold: float) -> tuple[np.ndarray, np.ndarray]:
    """
    Split ``dataset`` rows on ``row[feature_index] < threshold``.

    Both halves are copies that keep the original row order.  The label column
    is never a valid ``feature_index``.
    """
    data = _as_dataset(dataset)
    f = _check_feature(feature_index, data.shape[1] - 1)
    if not np.isfinite(threshold):
        raise ValueError(f"threshold must be finite, got {threshold!r}")
    goes_left = data[:, f] < threshold
    return data[goes_left], data[~goes_left]


# -----------------------------------------------------------------------------
# Split search
# -----------------------------------------------------------------------------
class Split(NamedTuple):
    """Winning split of :func:`find_best_split`."""
    feature_index: int
    threshold: float
    impurity: float


def find_best_split(dataset, features: Sequence[int]) -> Split | None:
    """
    Exhaustively search the split with the lowest size‑weighted Gini impurity.

    For each candidate feature (in the order given) the rows are stable‑sorted
    by that feature and every midpoint between adjacent values is proposed as a
    threshold.  The weighted impurity of the partition ``value < threshold`` is
    computed from cumulative class counts over the sorted column, which yields
    the same numbers as re‑partitioning the rows for every threshold.  Only a
    strictly lower impurity replaces the current best, so ties go to the first
    feature in ``features`` and, within a feature, to the lowest threshold.

    Thresholds that leave one side empty are skipped.  Such candidates arise
    when the smallest values of a column repeat, and they can never separate
    the rows.

    Parameters
    ----------
    dataset : array-like of shape (n_rows, n_features + 1)
        Rows with the class label in the last column.
    features : sequence of int
        Candidate feature indices.

    Returns
    -------
    Split or None
        ``None`` when the dataset has fewer than two rows or when no candidate
        feature takes at least two distinct values.

    Raises
    ------
    InvalidLabelError
        If a label is not ``0`` or ``1``.
    InvalidFeatureIndexError
        If a candidate feature index is out of range.
    """
    data = _as_dataset(dataset)
    n_rows = data.shape[0]
    n_features = data.shape[1] - 1
    features = [_check_feature(f, n_features) for f in features]
    if n_rows < 2:
        return None
    labels = data[:, -1]
    _check_labels(labels)

    total = float(n_rows)
    best: Split | None = None
    best_impurity = np.inf
    for f in features:
        order = np.argsort(data[:, f], kind="mergesort")
        v = data[order, f]
        # ones[k] = number of class-1 rows among the first k sorted rows
        ones = np.concatenate(([0.0], np.cumsum(labels[order] == 1.0, dtype=float)))

        thresholds = (v[:-1] + v[1:]) / 2.0
        n_left = np.searchsorted(v, thresholds, side="left")
        n_right = n_rows - n_left
        eligible = np.flatnonzero((n_left > 0) & (n_right > 0))
        if eligible.size == 0:
            continue

        n_left = n_left[eligible].astype(float)
        n_right = n_right[eligible].astype(float)
        ones_left = ones[n_left.astype(int)]
        ones_right = ones[-1] - ones_left
        weighted = (n_left / total) * _gini_from_counts(ones_left, n_left) \
            + (n_right / total) * _gini_from_counts(ones_right, n_right)

        i = int(np.argmin(weighted))
        if weighted[i] < best_impurity:
            best_impurity = float(weighted[i])
            best = Split(f, float(thresholds[eligible[i]]), best_impurity)
    return best
