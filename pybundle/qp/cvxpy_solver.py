import numpy as np

from .qp_solver import QPSolution, QPSolver, QPSolverError

try:
    import cvxpy as cp
except ImportError as err:
    raise QPSolverError("The cvxpy backend requires the cvxpy package") from err


class CVXPYSolver(QPSolver):
    """
    Solves the QP by passing it to cvxpy, which picks its
    default conic / QP solver
    """

    def solve(self) -> QPSolution:
        (hess, c, A_ub, b_ub, A_eq, b_eq, _) = self._problem_data()

        (n,) = c.shape

        x = cp.Variable(n)

        expr = c @ x

        if np.any(hess != 0.0):
            expr = expr + 0.5 * cp.quad_form(x, cp.psd_wrap(hess))

        constraints = []

        if A_ub.shape[0] > 0:
            constraints.append(A_ub @ x <= b_ub)

        if A_eq.shape[0] > 0:
            constraints.append(A_eq @ x == b_eq)

        problem = cp.Problem(cp.Minimize(expr), constraints)

        try:
            problem.solve()
        except cp.SolverError as err:
            raise QPSolverError("cvxpy failed to solve QP") from err

        status = problem.status

        if x.value is None:
            raise QPSolverError(f"cvxpy returned no solution (status: {status})")

        optimal = status == cp.OPTIMAL

        return self._make_solution(
            np.asarray(x.value, dtype=float), optimal, f"cvxpy status: {status}"
        )
