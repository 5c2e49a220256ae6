from pybundle.params import Params, QPSolverType

from .constraints import LinearConstraint, LinearConstraints, Relation
from .objective import QuadraticObjective, Sense
from .qp_solver import QPSolution, QPSolver, QPSolverError, VariableType


def qp_solver(params: Params) -> QPSolver:
    if params.qp_solver is not None:
        return params.qp_solver(params)

    solver_type = params.qp_solver_type

    if solver_type == QPSolverType.InteriorPoint:
        from .interior_point_solver import InteriorPointSolver

        return InteriorPointSolver(params)
    elif solver_type == QPSolverType.SLSQP:
        from .slsqp_solver import SLSQPSolver

        return SLSQPSolver(params)
    else:
        assert solver_type == QPSolverType.CVXPY
        from .cvxpy_solver import CVXPYSolver

        return CVXPYSolver(params)


__all__ = [
    "qp_solver",
    "LinearConstraint",
    "LinearConstraints",
    "QPSolution",
    "QPSolver",
    "QPSolverError",
    "QuadraticObjective",
    "Relation",
    "Sense",
    "VariableType",
]
