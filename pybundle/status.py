from enum import Enum, auto


class OptimizerStatus(Enum):
    ReachedMinGap = auto()
    """
    The gap between the smallest observed regularized objective value
    and the minimum of the regularized lower bound fell below the
    prescribed minimum gap
    """

    ReachedSteps = auto()
    """
    Performed the maximum number of steps prescribed by the
    algorithmic parameters before the gap closed
    """

    Error = auto()
    """
    The optimization could not be carried out, e.g. because the
    QP solver could not be constructed, failed repeatedly, or
    the gap became negative (incorrect oracle or solver)
    """

    @staticmethod
    def short_name(status):
        return {
            OptimizerStatus.ReachedMinGap: "min_gap",
            OptimizerStatus.ReachedSteps: "steps",
            OptimizerStatus.Error: "error",
        }[status]

    @staticmethod
    def description(status):
        return {
            OptimizerStatus.ReachedMinGap: "Reached minimum gap",
            OptimizerStatus.ReachedSteps: "Reached maximum number of steps",
            OptimizerStatus.Error: "Optimization failed",
        }[status]

    @staticmethod
    def success(status):
        """
        Returns
        -------
        bool
            Whether the status indicates a converged optimization
        """
        return status == OptimizerStatus.ReachedMinGap
