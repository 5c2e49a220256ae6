import numpy as np
from numpy import ndarray


def norm_sq(x: ndarray) -> float:
    return float(np.dot(x, x))


def norm_inf(x: ndarray) -> float:
    if x.size == 0:
        return 0.0

    return float(np.max(np.abs(x)))


def max_step(v: ndarray, dv: ndarray) -> float:
    """
    Largest step size :math:`\\alpha \\geq 0` such that
    :math:`v + \\alpha dv \\geq 0` for nonnegative :math:`v`
    (infinite if :math:`dv` has no negative entries)
    """
    decreasing = dv < 0.0

    if not decreasing.any():
        return np.inf

    return float(np.min(-v[decreasing] / dv[decreasing]))
