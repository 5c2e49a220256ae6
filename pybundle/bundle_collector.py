import math
from dataclasses import dataclass
from typing import Iterator, List, Optional

import numpy as np

from pybundle.qp import LinearConstraint, LinearConstraints, Relation


@dataclass(frozen=True, eq=False)
class Hyperplane:
    """
    A cutting plane :math:`w \\mapsto \\langle w, a \\rangle + b`
    bounding the objective from below
    """

    gradient: np.ndarray
    offset: float

    @property
    def dim(self) -> int:
        (dim,) = self.gradient.shape
        return dim

    def value(self, w: np.ndarray) -> float:
        return float(np.dot(w, self.gradient)) + self.offset


class BundleCollector:
    """
    Collects the hyperplanes generated during a bundle method run
    and turns them into the constraints

     .. math::
        \\langle w, a_i \\rangle + b_i \\leq \\xi

    of the QP over the variables :math:`(w, \\xi)`. Hyperplanes
    are never removed (except when clearing the entire collection)
    """

    def __init__(self) -> None:
        self._hyperplanes: List[Hyperplane] = []

    @property
    def num_weights(self) -> Optional[int]:
        if not self._hyperplanes:
            return None

        return self._hyperplanes[0].dim

    def add_hyperplane(self, gradient: np.ndarray, offset: float) -> Hyperplane:
        gradient = np.array(gradient, dtype=float)

        if gradient.ndim != 1:
            raise ValueError("Hyperplane gradient must be one-dimensional")

        offset = float(offset)

        if not math.isfinite(offset):
            raise ValueError(f"Hyperplane offset must be finite, got {offset}")

        num_weights = self.num_weights

        if (num_weights is not None) and (gradient.shape != (num_weights,)):
            raise ValueError(
                f"Hyperplane of dimension {gradient.shape[0]} does not match "
                f"dimension {num_weights} of previous hyperplanes"
            )

        gradient.setflags(write=False)

        hyperplane = Hyperplane(gradient, offset)
        self._hyperplanes.append(hyperplane)

        return hyperplane

    def get_constraints(self) -> LinearConstraints:
        num_weights = self.num_weights

        if num_weights is None:
            raise ValueError("Cannot create constraints without hyperplanes")

        constraints = LinearConstraints(num_weights + 1)

        for hyperplane in self._hyperplanes:
            coefs = np.append(hyperplane.gradient, -1.0)
            constraints.add(
                LinearConstraint(coefs, Relation.LessEqual, -hyperplane.offset)
            )

        return constraints

    def model_value(self, w: np.ndarray) -> float:
        """
        The value :math:`\\max_i \\langle w, a_i \\rangle + b_i` of the
        lower-bound model at the given point
        """
        if not self._hyperplanes:
            return -math.inf

        return max(hyperplane.value(w) for hyperplane in self._hyperplanes)

    def clear(self) -> None:
        self._hyperplanes = []

    def __len__(self) -> int:
        return len(self._hyperplanes)

    def __iter__(self) -> Iterator[Hyperplane]:
        return iter(self._hyperplanes)

    def __getitem__(self, index: int) -> Hyperplane:
        return self._hyperplanes[index]
