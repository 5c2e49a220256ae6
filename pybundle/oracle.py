import abc
from typing import Callable, Tuple, Union

import numpy as np


class Oracle(abc.ABC):
    """
    Base class for objectives :math:`L : \\mathbb{R}^{n} \\to \\mathbb{R}`
    which are convex, but not necessarily smooth, and are accessed only
    through their values and subgradients.

    Any callable mapping a point :math:`w` to a pair
    :math:`(L(w), a)` with :math:`a \\in \\partial L(w)` can be used
    in place of an oracle
    """

    @abc.abstractmethod
    def value(self, w: np.ndarray) -> float:
        """
        Parameters
        ----------
        w : np.ndarray
            The point :math:`w \\in \\mathbb{R}^{n}` at which
            to evaluate the objective

        Returns
        -------
        float
            The objective value :math:`L(w)`
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def gradient(self, w: np.ndarray) -> np.ndarray:
        """
        Parameters
        ----------
        w : np.ndarray
            The point :math:`w \\in \\mathbb{R}^{n}` at which
            to evaluate the subgradient

        Returns
        -------
        np.ndarray
            A subgradient :math:`a \\in \\partial L(w)`
        """
        raise NotImplementedError()

    def value_and_gradient(self, w: np.ndarray) -> Tuple[float, np.ndarray]:
        return (self.value(w), self.gradient(w))

    def __call__(self, w: np.ndarray) -> Tuple[float, np.ndarray]:
        return self.value_and_gradient(w)


OracleLike = Union[Oracle, Callable[[np.ndarray], Tuple[float, np.ndarray]]]
