from typing import Optional

import numpy as np
import scipy as sp

from pybundle.params import Params

from .qp_solver import QPSolution, QPSolver, VariableType


class SLSQPSolver(QPSolver):
    """
    Solves the QP using the SLSQP method of :py:func:`scipy.optimize.minimize`,
    warm-started from the previous solution
    """

    def __init__(self, params: Params) -> None:
        super().__init__(params)
        self.last_sol: Optional[np.ndarray] = None

    def initialize(
        self, num_vars: int, var_type: VariableType = VariableType.Continuous
    ) -> None:
        super().initialize(num_vars, var_type)
        self.last_sol = None

    def solve(self) -> QPSolution:
        (hess, c, A_ub, b_ub, A_eq, b_eq, _) = self._problem_data()

        params = self.params
        (n,) = c.shape

        def obj(x):
            return 0.5 * np.dot(x, hess @ x) + np.dot(c, x)

        def obj_grad(x):
            return hess @ x + c

        constraints = []

        if A_ub.shape[0] > 0:
            constraints.append(
                {
                    "type": "ineq",
                    "fun": lambda x: b_ub - A_ub @ x,
                    "jac": lambda x: -A_ub,
                }
            )

        if A_eq.shape[0] > 0:
            constraints.append(
                {
                    "type": "eq",
                    "fun": lambda x: A_eq @ x - b_eq,
                    "jac": lambda x: A_eq,
                }
            )

        if self.last_sol is not None and self.last_sol.shape == (n,):
            x0 = self.last_sol
        else:
            x0 = np.zeros((n,))

        result = sp.optimize.minimize(
            obj,
            x0,
            jac=obj_grad,
            method="SLSQP",
            constraints=constraints,
            options={"ftol": params.qp_tol, "maxiter": params.qp_iteration_limit},
        )

        x = np.asarray(result.x, dtype=float)

        solution = self._make_solution(x, bool(result.success), str(result.message))

        self.last_sol = x

        return solution
