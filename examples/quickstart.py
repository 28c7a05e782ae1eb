import logging
import numpy as np
from time import perf_counter
from cartpy import CARTClassifier, DegenerateSplitError

logging.basicConfig(level=logging.INFO)

# Generate synthetic data: class 1 inside a disc, class 0 outside
n_samples = 400
rng = np.random.default_rng(42)
X = rng.uniform(-1, 1, size=(n_samples, 2))
y = np.where(X[:, 0] ** 2 + X[:, 1] ** 2 < 0.5, "inside", "outside")

clf = CARTClassifier(feature_names=["x", "y"])

t0 = perf_counter()
try:
    clf.fit(X, y)
except DegenerateSplitError as e:
    print(f"Duplicate points with conflicting labels: {e}")
    clf.set_params(on_unsplittable="majority").fit(X, y)
print(f"fit: {perf_counter() - t0:.3f} s, training accuracy {clf.score(X, y):.3f}")

query = np.array([[0.1, -0.2], [0.9, 0.9]])
print("Predicted:", clf.predict(query).tolist())
print("Rules followed:", clf.predict_rule(query))

try:
    print(clf.export_graphviz(format="dot"))
except RuntimeError as e:
    print(f"Skipping Graphviz export: {e}")
clf.print_tree()
