from pybundle.bundle_collector import BundleCollector, Hyperplane
from pybundle.optimizer import BundleOptimizer
from pybundle.oracle import Oracle
from pybundle.params import Params, QPSolverType
from pybundle.result import OptimizerResult
from pybundle.status import OptimizerStatus

__all__ = [
    "BundleCollector",
    "BundleOptimizer",
    "Hyperplane",
    "Oracle",
    "OptimizerResult",
    "OptimizerStatus",
    "Params",
    "QPSolverType",
]
