import numpy as np
import pytest

from pybundle.callbacks import CallbackType
from pybundle.optimizer import BundleOptimizer
from pybundle.params import Params, QPSolverType
from pybundle.qp import QPSolverError
from pybundle.qp.interior_point_solver import InteriorPointSolver
from pybundle.status import OptimizerStatus

from .instances import (
    abs_instance,
    hinge_instance,
    quadratic_instance,
    scalar_instance,
)
from .oracles import AbsSum, CountingOracle, Quadratic


def reg_value(instance, w):
    return instance.oracle.value(w) + 0.5 * instance.lamb * np.dot(w, w)


def optimize_instance(instance, **args):
    params = Params(lamb=instance.lamb, display_interval=0.0, **args)
    optimizer = BundleOptimizer(params)

    w = np.copy(instance.w_0)
    result = optimizer.optimize(instance.oracle, w)

    return (result, w)


def test_scalar_example(scalar_instance):
    (result, w) = optimize_instance(scalar_instance, min_gap=1e-6, steps=100)

    assert result.status == OptimizerStatus.ReachedMinGap
    assert result.success
    assert result.iterations <= 50

    # regularization pulls the minimizer slightly towards zero
    assert np.allclose(w, scalar_instance.w_opt, atol=1e-2)
    assert w[0] < 3.0

    assert result.w is w
    assert result.gap <= 1e-6
    assert result.num_hyperplanes == result.iterations
    assert OptimizerStatus.short_name(result.status) == "min_gap"


def test_quadratic_convergence(quadratic_instance):
    instance = quadratic_instance
    (result, w) = optimize_instance(instance, min_gap=1e-6, steps=1000)

    assert result.status == OptimizerStatus.ReachedMinGap

    assert np.allclose(w, instance.w_opt, atol=1e-2)
    assert np.allclose(result.best_w, instance.w_opt, atol=1e-2)

    assert result.min_value == pytest.approx(reg_value(instance, result.best_w))
    assert result.min_value >= reg_value(instance, instance.w_opt) - 1e-8


def test_nonsmooth_convergence(abs_instance):
    instance = abs_instance
    (result, w) = optimize_instance(instance, min_gap=1e-6, steps=200)

    assert result.status == OptimizerStatus.ReachedMinGap
    assert np.allclose(w, instance.w_opt, atol=1e-4)


def test_hinge(hinge_instance):
    instance = hinge_instance
    (result, w) = optimize_instance(instance, min_gap=1e-8, steps=200)

    assert result.status == OptimizerStatus.ReachedMinGap

    # no point on a grid around the solution improves on the lower bound
    grid = np.linspace(-1.0, 1.0, 21)
    for dx in grid:
        for dy in grid:
            point = w + np.array([dx, dy])
            assert reg_value(instance, point) >= result.min_lower - 1e-8


@pytest.mark.parametrize("steps", [1, 3, 7])
def test_steps_respected(quadratic_instance, steps):
    oracle = CountingOracle(quadratic_instance.oracle)

    # a zero gap can only be reached if the model is exact
    params = Params(lamb=quadratic_instance.lamb, min_gap=0.0, steps=steps)
    optimizer = BundleOptimizer(params)

    w = np.copy(quadratic_instance.w_0)
    result = optimizer.optimize(oracle, w)

    assert result.status == OptimizerStatus.ReachedSteps
    assert not result.success
    assert result.iterations == steps
    assert oracle.num_calls == steps


def test_history(scalar_instance):
    (result, _) = optimize_instance(
        scalar_instance, min_gap=1e-6, steps=100, collect_path=True
    )

    iterations = result.iterations

    assert result.path.shape == (1, iterations + 1)
    assert result.values.shape == (iterations,)

    min_values = result.min_values
    min_lowers = result.min_lowers
    gaps = result.gaps

    # smallest observed value never increases
    assert (np.diff(min_values) <= 0.0).all()

    # the lower bound only gains hyperplanes
    assert (np.diff(min_lowers) >= -1e-7).all()

    assert (gaps >= -1e-7).all()
    assert gaps[-1] <= 1e-6

    prev_w = result.path[0, :-1]
    reg_values = result.values + 0.5 * scalar_instance.lamb * prev_w**2

    assert np.allclose(min_values, np.minimum.accumulate(reg_values))


def test_hyperplane_validity(quadratic_instance):
    instance = quadratic_instance
    oracle = instance.oracle

    params = Params(lamb=instance.lamb, min_gap=1e-6, steps=100)
    optimizer = BundleOptimizer(params)

    hyperplanes = []

    def computed_iteration(iteration, w_prev, w_next, hyperplane, *args):
        hyperplanes.append((w_prev, hyperplane))

    optimizer.callbacks.register(CallbackType.ComputedIteration, computed_iteration)

    optimizer.optimize(oracle, np.copy(instance.w_0))

    assert hyperplanes

    rng = np.random.default_rng(0)
    points = rng.normal(scale=5.0, size=(50, 3))

    for w_prev, hyperplane in hyperplanes:
        # tangent at the point of generation
        assert hyperplane.value(w_prev) == pytest.approx(oracle.value(w_prev))

        # supporting everywhere else
        for point in points:
            assert hyperplane.value(point) <= oracle.value(point) + 1e-8


def test_reuse_solver(scalar_instance, quadratic_instance):
    params = Params(lamb=scalar_instance.lamb, min_gap=1e-6, steps=100)
    optimizer = BundleOptimizer(params)

    assert optimizer.solver is None

    first_w = np.copy(scalar_instance.w_0)
    first_result = optimizer.optimize(scalar_instance.oracle, first_w)

    solver = optimizer.solver
    assert solver is not None

    second_w = np.copy(scalar_instance.w_0)
    second_result = optimizer.optimize(scalar_instance.oracle, second_w)

    assert optimizer.solver is solver

    fresh_w = np.copy(scalar_instance.w_0)
    fresh_result = BundleOptimizer(params).optimize(scalar_instance.oracle, fresh_w)

    for result, w in [(second_result, second_w), (fresh_result, fresh_w)]:
        assert result.status == first_result.status
        assert result.iterations == first_result.iterations
        assert np.allclose(w, first_w)
        assert result.min_value == pytest.approx(first_result.min_value)

    # different dimension, same solver
    result = optimizer.optimize(
        quadratic_instance.oracle, np.copy(quadratic_instance.w_0)
    )

    assert optimizer.solver is solver
    assert result.num_hyperplanes == result.iterations


def test_gradient_dimension_mismatch():
    params = Params(min_gap=1e-6, steps=10)
    optimizer = BundleOptimizer(params)

    def oracle(w):
        return (1.0, np.zeros((w.shape[0] + 1,)))

    with pytest.raises(ValueError):
        optimizer.optimize(oracle, np.zeros((2,)))

    assert len(optimizer.bundle_collector) == 0


def test_non_finite_value():
    optimizer = BundleOptimizer(Params())

    def oracle(w):
        return (np.nan, np.zeros_like(w))

    with pytest.raises(ValueError):
        optimizer.optimize(oracle, np.zeros((2,)))


@pytest.mark.parametrize(
    "w",
    [
        np.zeros((2,), dtype=int),
        np.zeros((2, 2)),
        np.zeros((0,)),
        np.array([0.0, np.inf]),
        [0.0, 0.0],
    ],
)
def test_invalid_weights(w):
    optimizer = BundleOptimizer(Params())

    with pytest.raises(ValueError):
        optimizer.optimize(Quadratic([0.0, 0.0]), w)

    assert optimizer.solver is None


@pytest.mark.parametrize(
    "params",
    [
        Params(lamb=0.0),
        Params(lamb=-1.0),
        Params(min_gap=-1.0),
        Params(steps=-1),
        Params(max_failed_solves=-1),
    ],
)
def test_invalid_params(params):
    optimizer = BundleOptimizer(params)

    with pytest.raises(ValueError):
        optimizer.optimize(Quadratic([0.0]), np.zeros((1,)))


def test_negative_gap():
    values = iter([1.0, 0.0])

    # claims L >= 1 everywhere, then reports L(0) = 0
    def inconsistent_oracle(w):
        return (next(values), np.zeros_like(w))

    params = Params(lamb=1.0, min_gap=1e-6, steps=10)
    optimizer = BundleOptimizer(params)

    result = optimizer.optimize(inconsistent_oracle, np.array([1.0]))

    assert result.status == OptimizerStatus.Error
    assert result.iterations == 2
    assert result.gap < 0.0


def test_solver_construction_error(scalar_instance):
    def factory(params):
        raise QPSolverError("No solver available")

    oracle = CountingOracle(scalar_instance.oracle)

    params = Params(lamb=scalar_instance.lamb, qp_solver=factory)
    result = BundleOptimizer(params).optimize(oracle, np.copy(scalar_instance.w_0))

    assert result.status == OptimizerStatus.Error
    assert result.iterations == 0
    assert oracle.num_calls == 0


class NonOptimalSolver(InteriorPointSolver):
    def solve(self):
        solution = super().solve()
        solution.optimal = False
        solution.message = "Optimality not certified"
        return solution


class FailingSolver(InteriorPointSolver):
    def solve(self):
        raise QPSolverError("Solver failed")


def test_non_optimal_escalation(scalar_instance):
    params = Params(
        lamb=scalar_instance.lamb,
        min_gap=1e-6,
        max_failed_solves=3,
        qp_solver=NonOptimalSolver,
    )

    w = np.copy(scalar_instance.w_0)
    result = BundleOptimizer(params).optimize(scalar_instance.oracle, w)

    assert result.status == OptimizerStatus.Error
    assert result.iterations == 3
    assert result.num_failed_solves == 3

    # the solutions were still used
    assert w[0] != 0.0


def test_non_optimal_without_escalation(scalar_instance):
    params = Params(
        lamb=scalar_instance.lamb,
        min_gap=1e-6,
        steps=100,
        max_failed_solves=0,
        qp_solver=NonOptimalSolver,
    )

    w = np.copy(scalar_instance.w_0)
    result = BundleOptimizer(params).optimize(scalar_instance.oracle, w)

    assert result.status == OptimizerStatus.ReachedMinGap
    assert result.num_failed_solves == result.iterations
    assert np.allclose(w, scalar_instance.w_opt, atol=1e-2)


def test_failing_solver(scalar_instance):
    params = Params(
        lamb=scalar_instance.lamb,
        min_gap=1e-6,
        max_failed_solves=2,
        qp_solver=FailingSolver,
    )

    w = np.copy(scalar_instance.w_0)
    result = BundleOptimizer(params).optimize(scalar_instance.oracle, w)

    assert result.status == OptimizerStatus.Error
    assert result.iterations == 2
    assert result.min_lower == -np.inf
    assert (w == scalar_instance.w_0).all()


def test_deriv_check(quadratic_instance):
    from pybundle.deriv_check import DerivError

    instance = quadratic_instance

    params = Params(lamb=instance.lamb, min_gap=1e-6, steps=100, deriv_check=True)
    result = BundleOptimizer(params).optimize(instance.oracle, np.ones((3,)))

    assert result.success

    def wrong_oracle(w):
        (value, gradient) = instance.oracle(w)
        return (value, -gradient)

    with pytest.raises(DerivError):
        BundleOptimizer(params).optimize(wrong_oracle, np.ones((3,)))


def test_large_values():
    oracle = Quadratic([1e3, -1e3])

    params = Params(lamb=1.0, min_gap=1e-3, steps=200)
    result = BundleOptimizer(params).optimize(oracle, np.zeros((2,)))

    assert result.status == OptimizerStatus.ReachedMinGap
    assert result.num_failed_solves == 0
    assert np.allclose(result.w, oracle.reg_minimizer(1.0), rtol=1e-4)


bad_scale_problems = [
    (AbsSum([1.0, 2.0, -3.0]), 1e-6),
    (Quadratic([1e6, -1e6]), 1.0),
]


@pytest.mark.parametrize("qp_solver_type", list(QPSolverType))
@pytest.mark.parametrize("oracle, lamb", bad_scale_problems)
def test_bad_scale(qp_solver_type, oracle, lamb):
    if qp_solver_type == QPSolverType.CVXPY:
        pytest.importorskip("cvxpy")

    params = Params(
        lamb=lamb,
        min_gap=1e-6,
        steps=300,
        qp_solver_type=qp_solver_type,
    )

    w = np.zeros((oracle.center.shape[0],))

    # solver difficulties end the run with a status instead of an exception
    result = BundleOptimizer(params).optimize(oracle, w)

    assert isinstance(result.status, OptimizerStatus)
    assert 1 <= result.iterations <= 300
    assert np.isfinite(w).all()
