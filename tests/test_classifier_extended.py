import numpy as np
import os
import pytest
from sklearn.base import clone
from cartpy import (
    CARTClassifier,
    DegenerateSplitError,
    InvalidFeatureIndexError,
    InvalidLabelError,
)


def _tiny_dataset():
    """Return a small dataset separable on the first feature at 3.5."""
    X = np.array([[1, 7], [2, 3], [5, 7], [6, 3]], dtype=float)
    y = np.array(['no', 'no', 'yes', 'yes'])
    return X, y


def test_classifier_maps_labels_back():
    X, y = _tiny_dataset()
    clf = CARTClassifier().fit(X, y)
    assert list(clf.classes_) == ['no', 'yes']
    assert clf.predict([[3, 0], [4, 0]]).tolist() == ['no', 'yes']
    assert clf.score(X, y) == 1.0
    assert clf.n_features_in_ == 2


def test_classifier_single_class():
    X = np.array([[1.0], [2.0]])
    clf = CARTClassifier().fit(X, [5, 5])
    assert clf.predict([[0.0], [9.0]]).tolist() == [5, 5]
    assert clf.tree_.n_nodes == 1


def test_classifier_restricted_features():
    X, y = _tiny_dataset()
    # the second feature cannot separate the classes
    clf = CARTClassifier(features=[1], on_unsplittable="majority").fit(X, y)
    assert clf.export_rules() == ["X[1] < 5.0000 => no", "X[1] >= 5.0000 => no"]


def test_classifier_rejects_more_than_two_classes():
    X = np.array([[1.0], [2.0], [3.0]])
    with pytest.raises(InvalidLabelError):
        CARTClassifier().fit(X, [0, 1, 2])


def test_classifier_input_validation():
    clf = CARTClassifier()
    with pytest.raises(ValueError):
        clf.fit([1.0, 2.0], [0, 1])
    with pytest.raises(ValueError):
        clf.fit([[1.0], [2.0]], [0])
    with pytest.raises(ValueError):
        clf.fit([[1.0], [np.nan]], [0, 1])
    with pytest.raises(ValueError):
        clf.fit(np.empty((0, 1)), [])
    with pytest.raises(ValueError):
        CARTClassifier(on_unsplittable="skip").fit([[1.0]], [0])


def test_classifier_duplicate_rows_policy():
    X = np.array([[1.0], [1.0], [2.0]])
    y = np.array([0, 1, 1])
    with pytest.raises(DegenerateSplitError):
        CARTClassifier().fit(X, y)
    clf = CARTClassifier(on_unsplittable="majority").fit(X, y)
    assert clf.predict([[1.0], [2.0]]).tolist() == [0, 1]


def test_classifier_not_fitted_raises():
    clf = CARTClassifier()
    with pytest.raises(ValueError):
        clf.predict([[1, 2]])
    with pytest.raises(ValueError):
        clf.predict_rule([[1, 2]])
    with pytest.raises(ValueError):
        clf.export_rules()


def test_classifier_rule_tracing():
    X, y = _tiny_dataset()
    clf = CARTClassifier(feature_names=['num', 'cat']).fit(X, y)
    rules = clf.predict_rule(X)
    assert len(rules) == len(X)
    assert rules[0] == "num < 3.5000"
    assert rules[-1] == "num >= 3.5000"
    assert clf.predict_rule([[0, 0]], feature_names=['a', 'b']) == ["a < 3.5000"]


def test_classifier_rule_export():
    X, y = _tiny_dataset()
    clf = CARTClassifier().fit(X, y, feature_names=['num', 'cat'])
    tree_rules = clf.export_rules(class_names=['neg', 'pos'])
    assert tree_rules == ["num < 3.5000 => neg", "num >= 3.5000 => pos"]


def test_classifier_single_leaf_rules():
    clf = CARTClassifier().fit([[1.0], [2.0]], [1, 1])
    assert clf.export_rules() == ["<root> => 1"]
    assert clf.predict_rule([[3.0]]) == ["<root>"]


def test_classifier_print_tree(capsys):
    X = np.array([[1], [2], [3], [4]], dtype=float)
    y = np.array([0, 1, 1, 0])
    CARTClassifier().fit(X, y).print_tree(feature_names=['x'])
    out = capsys.readouterr().out.splitlines()
    assert out == [
        "if x < 1.5000:",
        "  Predict 0",
        "else:",
        "  if x < 3.5000:",
        "    Predict 1",
        "  else:",
        "    Predict 0",
    ]


def test_classifier_graphviz_export():
    pytest.importorskip("graphviz")
    X, y = _tiny_dataset()
    clf = CARTClassifier().fit(X, y)
    source = clf.export_graphviz(feature_names=['num', 'cat'])
    assert "num < 3.5000" in source
    assert "class=yes" in source
    # export Graphviz in dot format – should not require external graphviz binary
    out_path = clf.export_graphviz('test_tree', format='dot')
    assert out_path.endswith('.dot')
    assert os.path.exists(out_path)
    os.remove(out_path)


def test_classifier_clone_keeps_params():
    clf = CARTClassifier(features=[0], on_unsplittable="majority")
    params = clone(clf).get_params()
    assert params["features"] == [0]
    assert params["on_unsplittable"] == "majority"
    assert params["feature_names"] is None


def test_classifier_rejects_wrong_feature_count():
    X, y = _tiny_dataset()
    clf = CARTClassifier().fit(X, y)
    for bad in ([[3.0]], [[3.0, 0.0, 1.0]]):
        with pytest.raises(InvalidFeatureIndexError):
            clf.predict(bad)
        with pytest.raises(InvalidFeatureIndexError):
            clf.predict_rule(bad)
    with pytest.raises(ValueError):
        clf.predict([3.0, 0.0])
