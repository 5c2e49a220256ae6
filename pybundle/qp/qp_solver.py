from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Optional, Tuple

import numpy as np

from pybundle.params import Params

from .constraints import LinearConstraints
from .objective import QuadraticObjective, Sense


class VariableType(Enum):
    Continuous = auto()
    Integer = auto()
    Binary = auto()


class QPSolverError(Exception):
    """
    Error signaling that the QP solver could not be set up or failed
    to produce any usable solution
    """

    pass


class QPSolution:
    """
    Outcome of a single QP solve. The solution and value are the
    best ones found, even if optimality could not be certified
    """

    def __init__(self, x: np.ndarray, value: float, optimal: bool, message: str):
        self.x = x
        self.value = value
        self.optimal = optimal
        self.message = message

    def __repr__(self) -> str:
        return "QPSolution(value={0}, optimal={1})".format(self.value, self.optimal)


class QPSolver(ABC):
    """
    Solver for quadratic programs with a fixed objective and
    changing linear constraints. The objective is set once via
    :py:meth:`set_objective`, the constraints are replaced via
    :py:meth:`set_constraints` before each call to :py:meth:`solve`
    """

    def __init__(self, params: Params) -> None:
        self.params = params
        self.num_vars: Optional[int] = None
        self.objective: Optional[QuadraticObjective] = None
        self.constraints: Optional[LinearConstraints] = None

    def initialize(
        self, num_vars: int, var_type: VariableType = VariableType.Continuous
    ) -> None:
        if var_type != VariableType.Continuous:
            raise QPSolverError(f"Unsupported variable type {var_type.name}")

        if num_vars <= 0:
            raise ValueError(f"Number of variables must be positive, got {num_vars}")

        self.num_vars = num_vars
        self.objective = None
        self.constraints = None

    def set_objective(self, objective: QuadraticObjective) -> None:
        if self.num_vars is None:
            raise QPSolverError("Solver has not been initialized")

        if objective.num_vars != self.num_vars:
            raise ValueError(
                f"Objective over {objective.num_vars} variables does not "
                f"match {self.num_vars} variables"
            )

        self.objective = objective

    def set_constraints(self, constraints: LinearConstraints) -> None:
        if self.num_vars is None:
            raise QPSolverError("Solver has not been initialized")

        if constraints.num_vars != self.num_vars:
            raise ValueError(
                f"Constraints over {constraints.num_vars} variables do not "
                f"match {self.num_vars} variables"
            )

        self.constraints = constraints

    def _problem_data(
        self,
    ) -> Tuple[
        np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray, float
    ]:
        """
        Converts the current problem into the minimization
        of :math:`\\frac{1}{2} x^{T} H x + c^{T} x` subject to
        :math:`A_{ub} x \\leq b_{ub}` and :math:`A_{eq} x = b_{eq}`.
        The returned sign recovers the original objective value
        """
        if self.objective is None:
            raise QPSolverError("No objective has been set")

        objective = self.objective
        sign = 1.0 if objective.sense == Sense.Minimize else -1.0

        hess = sign * objective.hessian()
        c = sign * objective.linear

        if self.constraints is None:
            constraints = LinearConstraints(objective.num_vars)
        else:
            constraints = self.constraints

        (A_ub, b_ub, A_eq, b_eq) = constraints.standard_form()

        return (hess, c, A_ub, b_ub, A_eq, b_eq, sign)

    def _make_solution(self, x: np.ndarray, optimal: bool, message: str) -> QPSolution:
        if not np.isfinite(x).all():
            raise QPSolverError(f"No finite solution available: {message}")

        assert self.objective is not None
        value = self.objective.value(x)

        return QPSolution(x, value, optimal, message)

    @abstractmethod
    def solve(self) -> QPSolution:
        raise NotImplementedError()
