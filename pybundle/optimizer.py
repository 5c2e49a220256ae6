import math
from typing import List, Optional, Tuple

import numpy as np

from pybundle.bundle_collector import BundleCollector
from pybundle.callbacks import Callbacks, CallbackType
from pybundle.display import Format, StateData, optimizer_display, print_problem_stats
from pybundle.log import logger
from pybundle.oracle import OracleLike
from pybundle.params import Params
from pybundle.qp import (
    QPSolution,
    QPSolver,
    QPSolverError,
    QuadraticObjective,
    Sense,
    VariableType,
    qp_solver,
)
from pybundle.result import OptimizerResult
from pybundle.status import OptimizerStatus
from pybundle.timer import SimpleTimer
from pybundle.util import norm_sq


class BundleOptimizer:
    """
    Minimizes the regularized objective

     .. math::
        \\frac{\\lambda}{2} \\|w\\|^2 + L(w)

    of a convex oracle :math:`L` by the bundle method: Each evaluation
    of the oracle at a point :math:`w_{t-1}` yields a value
    :math:`L(w_{t-1})` and a subgradient :math:`a_t`, which form the
    hyperplane

     .. math::
        \\langle w, a_t \\rangle + b_t, \\quad
        b_t = L(w_{t-1}) - \\langle w_{t-1}, a_t \\rangle

    bounding :math:`L` from below. The next point is the minimizer of the
    regularized lower bound :math:`\\mathcal{L}_t(w) = \\max_{i \\leq t}
    \\langle w, a_i \\rangle + b_i`, computed as the solution of the QP

     .. math::
        \\begin{align}
            \\min_{w, \\xi} \\quad & \\frac{\\lambda}{2} \\|w\\|^2 + \\xi \\\\
            \\text{s.t.} \\quad & \\langle w, a_i \\rangle + b_i \\leq \\xi
                \\quad \\forall i \\leq t
        \\end{align}

    The method stops as soon as the gap between the smallest regularized
    value observed so far and the optimal value of the QP drops below
    the minimum gap.
    """

    def __init__(self, params: Params = Params()) -> None:
        """
        Creates a new optimizer

        Parameters
        ----------
        params: pybundle.params.Params
            Parameters used by the optimizer
        """
        self.params = params
        self.callbacks = Callbacks()
        self.bundle_collector = BundleCollector()
        self.solver: Optional[QPSolver] = None

    def _setup_qp(self, num_weights: int) -> None:
        """
        Sets up the QP

         .. math::
            w^{*} = \\arg\\min \\frac{\\lambda}{2} \\|w\\|^2 + \\xi
            \\text{ s.t. } \\langle w, a_i \\rangle + b_i \\leq \\xi

        whose objective does not change throughout the run
        """
        if self.solver is None:
            logger.debug("Creating QP solver")
            self.solver = qp_solver(self.params)

        # one variable for each weight and one for xi
        self.solver.initialize(num_weights + 1, VariableType.Continuous)

        obj = QuadraticObjective(num_weights + 1)

        for i in range(num_weights):
            obj.set_quadratic_coefficient(i, i, 0.5 * self.params.lamb)

        obj.set_coefficient(num_weights, 1.0)
        obj.set_sense(Sense.Minimize)

        self.solver.set_objective(obj)

    def _evaluate(self, oracle: OracleLike, w: np.ndarray) -> Tuple[float, np.ndarray]:
        (value, gradient) = oracle(w)

        value = float(value)
        gradient = np.asarray(gradient, dtype=float)

        if gradient.shape != w.shape:
            raise ValueError(
                f"Oracle gradient of shape {gradient.shape} does not match "
                f"weights of shape {w.shape}"
            )

        if not math.isfinite(value):
            raise ValueError(f"Oracle returned non-finite value {value}")

        if not np.isfinite(gradient).all():
            raise ValueError("Oracle returned non-finite gradient")

        return (value, gradient)

    def _find_min_lower_bound(self, w: np.ndarray) -> QPSolution:
        """
        Solves the QP with respect to the current bundle,
        writes the minimizer into the weights, and returns the solution
        """
        assert self.solver is not None

        self.solver.set_constraints(self.bundle_collector.get_constraints())

        solution = self.solver.solve()

        if not solution.optimal:
            logger.warning(
                "QP could not be solved to optimality: %s", solution.message
            )

        (num_weights,) = w.shape
        w[:] = solution.x[:num_weights]

        return solution

    def _check_input(self, w: np.ndarray) -> None:
        if not isinstance(w, np.ndarray):
            raise ValueError(f"Weights must be a numpy array, got {type(w)}")

        if w.ndim != 1 or w.shape[0] == 0:
            raise ValueError(
                "Weights must be a non-empty one-dimensional array, "
                f"got shape {w.shape}"
            )

        if not np.issubdtype(w.dtype, np.floating):
            raise ValueError(f"Weights must be floating point, got {w.dtype}")

        if not np.isfinite(w).all():
            raise ValueError("Weights must be finite")

    def print_result(self, status: OptimizerStatus, result: OptimizerResult) -> None:
        desc = "{:>45s}".format(OptimizerStatus.description(status))

        status_desc = Format.redgreen(desc, OptimizerStatus.success(status), bold=True)
        status_name = Format.bold("{:>20s}".format("Status"))

        logger.info("%20s: %45s", status_name, status_desc)
        logger.info("%20s: %45s", "Time", f"{result.total_time:.2f}s")
        logger.info("%20s: %45d", "Iterations", result.iterations)
        logger.info("%20s: %45d", "Hyperplanes", result.num_hyperplanes)
        logger.info("%20s: %45d", "Failed QP solves", result.num_failed_solves)

        logger.info("%20s: %45e", "Min value", result.min_value)
        logger.info("%20s: %45e", "Min lower bound", result.min_lower)
        logger.info("%20s: %45e", "Gap", result.gap)

    def optimize(self, oracle: OracleLike, w: np.ndarray) -> OptimizerResult:
        """
        Runs the bundle method on the given oracle starting from the
        given weights, which are updated in place

        Parameters
        ----------
        oracle: pybundle.oracle.OracleLike
            Callable returning the value :math:`L(w)` and a subgradient
            :math:`a \\in \\partial L(w)` for given weights :math:`w`
        w: np.ndarray
            The initial weights :math:`w_0 \\in \\mathbb{R}^{n}`. Overwritten
            with the minimizer of the regularized lower bound after each
            iteration

        Returns
        -------
        pybundle.result.OptimizerResult
            The result of the run
        """
        params = self.params
        params.validate()

        self._check_input(w)

        (num_weights,) = w.shape

        timer = SimpleTimer()

        self.bundle_collector.clear()

        min_value = math.inf
        min_lower = -math.inf
        best_w: Optional[np.ndarray] = None

        iteration = 0
        failed_solves = 0
        total_failed_solves = 0
        status: Optional[OptimizerStatus] = None

        try:
            self._setup_qp(num_weights)
        except QPSolverError as err:
            logger.error("Failed to set up QP solver: %s", err)
            status = OptimizerStatus.Error

        if params.deriv_check and status is None:
            from pybundle.deriv_check import deriv_check

            logger.info("Checking oracle gradient")
            (_, gradient) = self._evaluate(oracle, w)
            deriv_check(lambda x: self._evaluate(oracle, x)[0], w, gradient, params)
            logger.info("Finished derivative check")

        if params.collect_path:
            path: Optional[List[np.ndarray]] = [np.copy(w)]
            values: List[float] = []
            min_values: List[float] = []
            min_lowers: List[float] = []
        else:
            path = None

        if status is None:
            print_problem_stats(num_weights, params)

            display = optimizer_display(params)
            logger.info(display.header)

        while status is None:
            iteration += 1

            w_prev = np.copy(w)

            (value, gradient) = self._evaluate(oracle, w_prev)

            # update smallest observed value of regularized L
            reg_value = value + 0.5 * params.lamb * norm_sq(w_prev)

            if reg_value < min_value:
                min_value = reg_value
                best_w = w_prev

            # hyperplane offset
            offset = value - float(np.dot(w_prev, gradient))

            hyperplane = self.bundle_collector.add_hyperplane(gradient, offset)

            try:
                solution: Optional[QPSolution] = self._find_min_lower_bound(w)
            except QPSolverError as err:
                logger.warning("QP solver failed: %s", err)
                solution = None

            if (solution is None) or (not solution.optimal):
                failed_solves += 1
                total_failed_solves += 1
            else:
                failed_solves = 0

            if solution is not None:
                min_lower = solution.value

            gap = min_value - min_lower

            self.callbacks(
                CallbackType.ComputedIteration,
                iteration,
                w_prev,
                np.copy(w),
                hyperplane,
                min_value,
                min_lower,
            )

            if path is not None:
                path.append(np.copy(w))
                values.append(value)
                min_values.append(min_value)
                min_lowers.append(min_lower)

            if display.should_display():
                state = StateData()
                state["iter"] = iteration
                state["value"] = value
                state["min_value"] = min_value
                state["min_lower"] = min_lower
                state["gap"] = gap
                state["step_norm"] = lambda: float(np.linalg.norm(w - w_prev))
                state["num_hyperplanes"] = len(self.bundle_collector)
                state["qp_optimal"] = (solution is not None) and solution.optimal

                logger.info(display.row(state))

            if gap < -params.gap_tol * max(1.0, abs(min_value)):
                logger.error(
                    "Encountered negative gap %e (incorrect oracle or QP solver?)",
                    gap,
                )
                status = OptimizerStatus.Error
            elif gap <= params.min_gap:
                logger.debug("Reached minimum gap")
                status = OptimizerStatus.ReachedMinGap
            elif (params.max_failed_solves > 0) and (
                failed_solves >= params.max_failed_solves
            ):
                logger.error(
                    "QP could not be solved to optimality in %d consecutive steps",
                    failed_solves,
                )
                status = OptimizerStatus.Error
            elif (params.steps > 0) and (iteration >= params.steps):
                logger.debug("Reached maximum number of steps")
                status = OptimizerStatus.ReachedSteps

        result_props = dict()

        if path is not None:
            result_props["path"] = np.vstack(path).T
            result_props["values"] = np.array(values)
            result_props["min_values"] = np.array(min_values)
            result_props["min_lowers"] = np.array(min_lowers)
            result_props["gaps"] = np.array(min_values) - np.array(min_lowers)

        result = OptimizerResult(
            w,
            status,
            iterations=iteration,
            min_value=min_value,
            min_lower=min_lower,
            best_w=best_w,
            num_hyperplanes=len(self.bundle_collector),
            num_failed_solves=total_failed_solves,
            total_time=timer.elapsed(),
            **result_props,
        )

        logger.debug(
            "Finished after %d iterations with status '%s'",
            iteration,
            OptimizerStatus.short_name(status),
        )

        self.print_result(status, result)

        return result
