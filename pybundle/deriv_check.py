from typing import Callable

import numpy as np

from pybundle.params import Params


class DerivError(ValueError):
    def __init__(self, expected_value, actual_value, atol) -> None:
        self.expected_value = expected_value
        self.actual_value = actual_value
        self.atol = atol

        self.invalid_deriv = np.logical_not(
            np.isclose(self.expected_value, self.actual_value, atol=self.atol)
        )
        self.invalid_indices = np.where(self.invalid_deriv)[0]

        self.deriv_diffs = np.abs(self.expected_value - self.actual_value)
        self.max_deriv_diff = self.deriv_diffs.max()

    def __str__(self):
        num_invalid_indices = self.invalid_indices.shape[0]

        message = (
            f"Expected and actual (findiff) gradient "
            f"differ at {num_invalid_indices} indices:\n"
        )

        diffs = []

        for invalid_index in self.invalid_indices:
            expected = self.expected_value[invalid_index].item()
            actual = self.actual_value[invalid_index].item()

            diffs.append(f"{invalid_index} | {expected} != {actual}")

        return message + "\n".join(diffs)


def deriv_check(
    f: Callable[[np.ndarray], float],
    wval: np.ndarray,
    gval: np.ndarray,
    params: Params,
) -> None:
    """
    Compares the gradient :math:`g` of :math:`f` at :math:`w`
    against forward differences. Only meaningful at points where
    :math:`f` is differentiable

    Raises
    ------
    DerivError
        If any component differs by more than the tolerance
    """
    (n,) = wval.shape

    assert gval.shape == (n,)

    fval = f(wval)
    eps = params.deriv_pert

    wtest = np.copy(wval)
    apx_gval = np.zeros((n,))

    for i in range(n):
        wtest[i] += eps
        apx_gval[i] = (f(wtest) - fval) / eps
        wtest[i] -= eps

    if not np.allclose(gval, apx_gval, atol=params.deriv_tol):
        raise DerivError(gval, apx_gval, params.deriv_tol)
