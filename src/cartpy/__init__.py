# cartpy/__init__.py
"""
cartpy: binary CART decision trees (Gini criterion) in Python.

Exports:
    - CARTClassifier
    - build_tree, DecisionTree, Leaf, Decision
    - gini_impurity, partition, find_best_split, Split
    - the error classes raised by training and prediction
"""
from ._exceptions import (
    CARTError,
    DegenerateSplitError,
    EmptyDatasetError,
    InvalidFeatureIndexError,
    InvalidLabelError,
)
from .splitter import Split, find_best_split, gini_impurity, partition
from .tree import CARTClassifier, Decision, DecisionTree, Leaf, build_tree

__all__ = [
    "CARTClassifier",
    "build_tree",
    "DecisionTree",
    "Leaf",
    "Decision",
    "gini_impurity",
    "partition",
    "find_best_split",
    "Split",
    "CARTError",
    "InvalidLabelError",
    "EmptyDatasetError",
    "InvalidFeatureIndexError",
    "DegenerateSplitError",
]
__version__ = "0.1.0"
