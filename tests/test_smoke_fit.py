import numpy as np
from cartpy import CARTClassifier

def test_classifier_smoke():
    X = np.array([[1, 10], [2, 20], [3, 10], [4, 20]], dtype=float)
    y = np.array([0, 0, 1, 1])
    clf = CARTClassifier(feature_names=['num', 'other'])
    clf.fit(X, y)
    _ = clf.predict(X)
    _ = clf.export_rules(class_names=['no', 'yes'])
