import numpy as np

from pybundle.oracle import Oracle


class HingeLoss(Oracle):
    """
    Average hinge loss of a linear classifier
    """

    def __init__(self, features, labels):
        self.features = np.asarray(features, dtype=float)
        self.labels = np.asarray(labels, dtype=float)

    def margins(self, w):
        return 1.0 - self.labels * (self.features @ w)

    def value(self, w):
        return float(np.maximum(self.margins(w), 0.0).mean())

    def gradient(self, w):
        active = self.margins(w) > 0.0
        (num_samples, _) = self.features.shape

        return -(self.labels[active] @ self.features[active]) / num_samples
