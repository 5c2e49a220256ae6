import dataclasses
import enum
import typing
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional

if typing.TYPE_CHECKING:
    from .qp.qp_solver import QPSolver


class QPSolverType(Enum):
    """
    Backend used to solve the quadratic programs arising in
    each iteration of the bundle method
    """

    InteriorPoint = auto()
    """
    Dense primal-dual interior point method (Mehrotra predictor-corrector)
    """
    SLSQP = auto()
    """
    Sequential least squares programming as provided by
    :py:func:`scipy.optimize.minimize`
    """
    CVXPY = auto()
    """
    Modeling layer cvxpy with its default QP solver (optional dependency)
    """


@dataclass
class Params:
    """
    Parameters used to minimize an oracle using a
    :py:class:`pybundle.optimizer.BundleOptimizer`
    """

    # regularizer weight
    lamb: float = 1.0

    # stopping criterion of the bundle method
    min_gap: float = 1e-5

    # maximal number of steps, 0 = no limit
    steps: int = 0

    # negative gaps down to -gap_tol * max(1, |min value|) are attributed
    # to round-off
    gap_tol: float = 1e-6

    # consecutive failed QP solves before giving up, 0 = no limit
    max_failed_solves: int = 5

    qp_solver_type: QPSolverType = QPSolverType.InteriorPoint
    qp_solver: Optional[Callable[["Params"], "QPSolver"]] = None
    qp_tol: float = 1e-10
    qp_iteration_limit: int = 200

    deriv_check: bool = False
    deriv_pert: float = 1e-8
    deriv_tol: float = 1e-4

    display_interval: float = 0.1
    collect_path: bool = False

    def __post_init__(self):
        # Convert enum strings to enum values
        for key, attr in self.annotations():
            if isinstance(attr, enum.EnumMeta):
                val = getattr(self, key)
                if isinstance(val, str):
                    setattr(self, key, attr[val])

    def validate(self) -> None:
        if not self.lamb > 0.0:
            raise ValueError(f"Regularizer weight must be positive, got {self.lamb}")

        if not self.min_gap >= 0.0:
            raise ValueError(f"Minimum gap must be nonnegative, got {self.min_gap}")

        if self.steps < 0:
            raise ValueError(f"Number of steps must be nonnegative, got {self.steps}")

        if self.max_failed_solves < 0:
            raise ValueError(
                "Number of failed solves must be nonnegative, "
                f"got {self.max_failed_solves}"
            )

    def write(self, filename):
        import yaml

        class Dumper(yaml.SafeDumper):
            def __init__(self, stream, **args):
                super().__init__(stream, **args)

            def represent_data(self, data):
                if isinstance(data, Enum):
                    return self.represent_data(data.name)
                return super().represent_data(data)

        data = dataclasses.asdict(self)

        # Custom factories cannot be serialized
        data.pop("qp_solver")

        with open(filename, "w") as f:
            yaml.dump(data, f, Dumper=Dumper)

    def annotations(self):
        return type(self).__annotations__.items()

    @staticmethod
    def read(filename):
        import yaml

        with open(filename, "r") as f:
            data = yaml.safe_load(f)
            return Params(**data)
