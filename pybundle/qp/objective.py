from enum import Enum, auto
from typing import Dict, Tuple

import numpy as np


class Sense(Enum):
    Minimize = auto()
    Maximize = auto()


class QuadraticObjective:
    """
    A quadratic objective

     .. math::
        c_0 + \\sum_{i} c_i x_i + \\sum_{i, j} q_{ij} x_i x_j

    over a fixed number of variables, to be minimized or maximized
    """

    def __init__(self, num_vars: int) -> None:
        if num_vars <= 0:
            raise ValueError(f"Number of variables must be positive, got {num_vars}")

        self.num_vars = num_vars
        self._linear = np.zeros((num_vars,))
        self._quadratic: Dict[Tuple[int, int], float] = dict()
        self._constant = 0.0
        self._sense = Sense.Minimize

    def _check_index(self, i: int) -> None:
        if not 0 <= i < self.num_vars:
            raise IndexError(
                f"Variable index {i} out of range for {self.num_vars} variables"
            )

    def set_coefficient(self, i: int, value: float) -> None:
        self._check_index(i)
        self._linear[i] = value

    def set_quadratic_coefficient(self, i: int, j: int, value: float) -> None:
        self._check_index(i)
        self._check_index(j)
        self._quadratic[(i, j)] = value

    def set_constant(self, value: float) -> None:
        self._constant = value

    def set_sense(self, sense: Sense) -> None:
        self._sense = sense

    @property
    def sense(self) -> Sense:
        return self._sense

    @property
    def constant(self) -> float:
        return self._constant

    @property
    def linear(self) -> np.ndarray:
        return self._linear.copy()

    def quadratic_coefficients(self) -> Dict[Tuple[int, int], float]:
        return dict(self._quadratic)

    def hessian(self) -> np.ndarray:
        """
        Returns
        -------
        np.ndarray
            The symmetric matrix :math:`H` such that the quadratic part
            of the objective equals :math:`\\frac{1}{2} x^{T} H x`
        """
        n = self.num_vars
        hess = np.zeros((n, n))

        for (i, j), value in self._quadratic.items():
            hess[i, j] += value
            hess[j, i] += value

        return hess

    def value(self, x: np.ndarray) -> float:
        assert x.shape == (self.num_vars,)

        quad = sum(value * x[i] * x[j] for (i, j), value in self._quadratic.items())

        return float(self._constant + np.dot(self._linear, x) + quad)

    def __repr__(self) -> str:
        return "QuadraticObjective(num_vars={0}, sense={1})".format(
            self.num_vars, self.sense
        )
