from enum import Enum, auto
from typing import Iterator, List, Tuple

import numpy as np

from pybundle.util import norm_inf


class Relation(Enum):
    LessEqual = auto()
    Equal = auto()
    GreaterEqual = auto()


class LinearConstraint:
    """
    A linear constraint :math:`\\langle a, x \\rangle \\circ v`
    with :math:`\\circ \\in \\{ \\leq, =, \\geq \\}`
    """

    def __init__(self, coefs: np.ndarray, relation: Relation, value: float) -> None:
        coefs = np.asarray(coefs, dtype=float)

        if coefs.ndim != 1:
            raise ValueError("Constraint coefficients must be one-dimensional")

        self.coefs = coefs
        self.relation = relation
        self.value = float(value)

    @property
    def num_vars(self) -> int:
        (num_vars,) = self.coefs.shape
        return num_vars

    def violation(self, x: np.ndarray) -> float:
        lhs = float(np.dot(self.coefs, x))

        if self.relation == Relation.LessEqual:
            return max(lhs - self.value, 0.0)
        elif self.relation == Relation.GreaterEqual:
            return max(self.value - lhs, 0.0)

        assert self.relation == Relation.Equal
        return abs(lhs - self.value)

    def __repr__(self) -> str:
        return "LinearConstraint(num_vars={0}, relation={1}, value={2})".format(
            self.num_vars, self.relation, self.value
        )


class LinearConstraints:
    """
    An ordered collection of :py:class:`LinearConstraint` instances
    over a common number of variables
    """

    def __init__(self, num_vars: int) -> None:
        self.num_vars = num_vars
        self._constraints: List[LinearConstraint] = []

    def add(self, constraint: LinearConstraint) -> None:
        if constraint.num_vars != self.num_vars:
            raise ValueError(
                f"Constraint over {constraint.num_vars} variables does not "
                f"match {self.num_vars} variables"
            )

        self._constraints.append(constraint)

    def __len__(self) -> int:
        return len(self._constraints)

    def __iter__(self) -> Iterator[LinearConstraint]:
        return iter(self._constraints)

    def __getitem__(self, index: int) -> LinearConstraint:
        return self._constraints[index]

    def standard_form(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Returns
        -------
        tuple
            Dense matrices and right-hand sides
            :math:`(A_{ub}, b_{ub}, A_{eq}, b_{eq})` such that the constraints
            are equivalent to :math:`A_{ub} x \\leq b_{ub}` and
            :math:`A_{eq} x = b_{eq}`
        """
        n = self.num_vars

        ub_rows = []
        ub_rhs = []
        eq_rows = []
        eq_rhs = []

        for constraint in self._constraints:
            if constraint.relation == Relation.LessEqual:
                ub_rows.append(constraint.coefs)
                ub_rhs.append(constraint.value)
            elif constraint.relation == Relation.GreaterEqual:
                ub_rows.append(-constraint.coefs)
                ub_rhs.append(-constraint.value)
            else:
                eq_rows.append(constraint.coefs)
                eq_rhs.append(constraint.value)

        def stack(rows, rhs):
            if not rows:
                return (np.zeros((0, n)), np.zeros((0,)))
            return (np.vstack(rows), np.array(rhs))

        (A_ub, b_ub) = stack(ub_rows, ub_rhs)
        (A_eq, b_eq) = stack(eq_rows, eq_rhs)

        return (A_ub, b_ub, A_eq, b_eq)

    def violation(self, x: np.ndarray) -> float:
        """
        The maximum violation of any of the constraints at the given point
        """
        violations = np.array([c.violation(x) for c in self._constraints])
        return norm_inf(violations)
