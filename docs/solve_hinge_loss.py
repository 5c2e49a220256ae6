import logging

import numpy as np

from hinge_loss import HingeLoss
from pybundle.optimizer import BundleOptimizer
from pybundle.params import Params

logging.basicConfig(level=logging.INFO)

rng = np.random.default_rng(0)

features = rng.normal(size=(200, 5))
labels = np.sign(features @ np.array([1.0, -2.0, 0.5, 0.0, 1.5]))

oracle = HingeLoss(features, labels)
optimizer = BundleOptimizer(Params(lamb=1e-2, min_gap=1e-6))

w = np.zeros((5,))
result = optimizer.optimize(oracle, w)

print(result.w)
