from typing import Optional

import numpy as np

from pybundle.status import OptimizerStatus


class OptimizerResult:
    """
    The result of a minimization using a
    :py:class:`pybundle.optimizer.BundleOptimizer`
    """

    def __init__(
        self,
        w: np.ndarray,
        status: OptimizerStatus,
        iterations: int,
        min_value: float,
        min_lower: float,
        best_w: Optional[np.ndarray],
        num_hyperplanes: int,
        num_failed_solves: int,
        total_time: float,
        **attrs
    ):
        self._attrs = attrs

        self._w = w
        self._status = status
        self.iterations = iterations
        self.min_value = min_value
        self.min_lower = min_lower
        self.best_w = best_w
        self.num_hyperplanes = num_hyperplanes
        self.num_failed_solves = num_failed_solves
        self.total_time = total_time

    @property
    def status(self) -> OptimizerStatus:
        """
        The status of the run as a :py:class:`pybundle.status.OptimizerStatus`
        """
        return self._status

    def __getattr__(self, name):
        attrs = super().__getattribute__("_attrs")
        val = attrs.get(name, None)

        if val is None:
            return val

        if callable(val):
            return val()

        return val

    @property
    def w(self) -> np.ndarray:
        """
        The final weights :math:`w_t = \\arg\\min_{w} \\frac{\\lambda}{2}
        \\|w\\|^2 + \\mathcal{L}_t(w)`, i.e., the array passed to the
        optimizer, updated in place
        """
        return self._w

    @property
    def gap(self) -> float:
        """
        The final gap :math:`\\varepsilon_t` between the smallest observed
        regularized objective value and the minimum of the regularized
        lower bound
        """
        return self.min_value - self.min_lower

    def __repr__(self) -> str:
        return "OptimizerResult(status={0})".format(self.status)

    @property
    def success(self):
        return OptimizerStatus.success(self.status)
