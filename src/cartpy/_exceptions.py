"""Errors raised while training or querying a tree."""


class CARTError(ValueError):
    """Base class for all tree construction and prediction errors."""


class InvalidLabelError(CARTError):
    """A class label outside {0, 1} reached the impurity computation."""


class EmptyDatasetError(CARTError):
    """A dataset with zero rows was handed to the tree builder."""


class InvalidFeatureIndexError(CARTError):
    """A feature index does not address a feature column."""


class DegenerateSplitError(CARTError):
    """A split left one side empty, or no split can separate the rows."""
