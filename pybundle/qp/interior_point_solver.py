import warnings

import numpy as np
import scipy as sp

from pybundle.log import logger
from pybundle.util import max_step, norm_inf

from .qp_solver import QPSolution, QPSolver

# Fraction of the distance to the boundary taken by each step
step_fraction = 0.99


class InteriorPointSolver(QPSolver):
    """
    Dense primal-dual interior point method using Mehrotra's
    predictor-corrector scheme. Solves

     .. math::
        \\begin{align}
            \\min_{x} \\quad & \\frac{1}{2} x^{T} H x + c^{T} x \\\\
            \\text{s.t.} \\quad & A x + s = b, \\quad s \\geq 0 \\\\
                              & E x = f
        \\end{align}

    by applying Newton's method to the perturbed optimality conditions

     .. math::
        \\begin{align}
            H x + c + A^{T} z + E^{T} y &= 0 \\\\
            s \\circ z &= \\mu e
        \\end{align}

    where the slacks :math:`s` and the multipliers :math:`z` are
    kept strictly positive. Each Newton system is reduced to

     .. math::
        \\begin{pmatrix}
            H + A^{T} S^{-1} Z A & E^{T} \\\\
            E & 0
        \\end{pmatrix}
        \\begin{pmatrix} dx \\\\ dy \\end{pmatrix}
        = \\ldots

    and solved by a dense LU factorization
    """

    def _factorize(self, hess, A_ub, A_eq, weights):
        (n, _) = hess.shape
        (p, _) = A_eq.shape

        mat = np.zeros((n + p, n + p))
        mat[:n, :n] = hess + A_ub.T @ (weights[:, np.newaxis] * A_ub)
        mat[:n, n:] = A_eq.T
        mat[n:, :n] = A_eq

        return sp.linalg.lu_factor(mat)

    def _direction(self, lu, A_ub, s, z, r_d, r_p, r_e, r_c):
        (n,) = r_d.shape

        rhs = np.concatenate((-r_d - A_ub.T @ ((z * r_p - r_c) / s), -r_e))

        sol = sp.linalg.lu_solve(lu, rhs)

        dx = sol[:n]
        dy = sol[n:]
        ds = -r_p - A_ub @ dx
        dz = (-r_c - z * ds) / s

        return (dx, dy, ds, dz)

    def solve(self) -> QPSolution:
        (hess, c, A_ub, b_ub, A_eq, b_eq, _) = self._problem_data()

        params = self.params
        tol = params.qp_tol

        (m, n) = A_ub.shape
        (p, _) = A_eq.shape

        x = np.zeros((n,))
        y = np.zeros((p,))
        s = np.maximum(b_ub - A_ub @ x, 1.0)
        z = np.ones((m,))

        message = "Reached iteration limit of {0}".format(params.qp_iteration_limit)

        for iteration in range(params.qp_iteration_limit):
            hess_x = hess @ x
            A_x = A_ub @ x
            A_z = A_ub.T @ z

            r_d = hess_x + c + A_z + A_eq.T @ y
            r_p = A_x + s - b_ub
            r_e = A_eq @ x - b_eq

            comp = float(np.dot(s, z))
            mu = comp / m if m > 0 else 0.0

            # residuals relative to the magnitude of the terms they are made of
            dual_scale = 1.0 + max(norm_inf(c), norm_inf(hess_x), norm_inf(A_z))
            primal_scale = 1.0 + max(norm_inf(b_ub), norm_inf(A_x))
            eq_scale = 1.0 + norm_inf(b_eq)
            obj_scale = 1.0 + abs(0.5 * np.dot(x, hess_x) + np.dot(c, x))

            if (
                norm_inf(r_d) <= tol * dual_scale
                and norm_inf(r_p) <= tol * primal_scale
                and norm_inf(r_e) <= tol * eq_scale
                and comp <= tol * obj_scale
            ):
                logger.debug(
                    "Interior point method converged after %d iterations", iteration
                )
                message = "Optimal solution found after {0} iterations".format(
                    iteration
                )
                return self._make_solution(x, True, message)

            with np.errstate(over="ignore", divide="ignore"):
                weights = z / s

            if not np.isfinite(weights).all():
                logger.debug("Interior point method stalled with vanishing slacks")
                message = "Slacks vanished before convergence"
                break

            try:
                with warnings.catch_warnings():
                    warnings.simplefilter("error", sp.linalg.LinAlgWarning)

                    lu = self._factorize(hess, A_ub, A_eq, weights)

                    # Predictor
                    r_c = s * z
                    (dx, dy, ds, dz) = self._direction(
                        lu, A_ub, s, z, r_d, r_p, r_e, r_c
                    )

                    if m > 0:
                        alpha_aff = min(1.0, max_step(s, ds), max_step(z, dz))

                        mu_aff = (
                            float(np.dot(s + alpha_aff * ds, z + alpha_aff * dz)) / m
                        )
                        sigma = (mu_aff / mu) ** 3

                        # Corrector
                        r_c = s * z + ds * dz - sigma * mu
                        (dx, dy, ds, dz) = self._direction(
                            lu, A_ub, s, z, r_d, r_p, r_e, r_c
                        )

            # lu_factor rejects matrices with infs or NaNs by a ValueError
            except (
                ValueError,
                np.linalg.LinAlgError,
                sp.linalg.LinAlgWarning,
            ) as err:
                logger.debug("Interior point method failed: %s", err)
                message = "Singular KKT system: {0}".format(err)
                break

            if not all(np.isfinite(d).all() for d in (dx, dy, ds, dz)):
                message = "Numerical difficulties in Newton direction"
                break

            alpha = min(1.0, step_fraction * min(max_step(s, ds), max_step(z, dz)))

            x += alpha * dx
            y += alpha * dy
            s += alpha * ds
            z += alpha * dz

        return self._make_solution(x, False, message)
