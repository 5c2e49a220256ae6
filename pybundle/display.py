from abc import ABC, abstractmethod
from typing import List, Literal

from termcolor import colored

from pybundle.log import logger
from pybundle.params import Params
from pybundle.timer import SimpleTimer


class StateData:
    def __init__(self):
        self._entries = dict()

    def __setitem__(self, key, value):
        self._entries[key] = value

    def __getitem__(self, key):
        entry = self._entries[key]
        if callable(entry):
            return entry()
        return entry


class Format:
    @staticmethod
    def bold(s: str) -> str:
        return colored(s, attrs=["bold"])

    @staticmethod
    def _cond_color(cond: bool) -> Literal["red", "green"]:
        return "green" if cond else "red"

    @staticmethod
    def redgreen(s: str, cond: bool, bold: bool) -> str:
        if bold:
            return colored(s, Format._cond_color(cond), attrs=["bold"])

        return colored(s, Format._cond_color(cond))


class BoldFormatter:
    def __init__(self, format: str):
        self.format = format

    def __call__(self, state):
        return Format.bold(self.format.format(state))


class StringFormatter:
    def __init__(self, format: str):
        self.format = format

    def __call__(self, state):
        return self.format.format(state)


class SolveFormatter:
    def __call__(self, state):
        optimal = state
        solve_str = "optimal" if optimal else "failed"
        return Format.redgreen("{:^8s}".format(solve_str), optimal, bold=True)


class Column(ABC):
    def __init__(self, name: str, width: int):
        self.name = name
        self.width = width

    @property
    def header(self) -> str:
        return "{:^{}s}".format(self.name, self.width)

    @abstractmethod
    def content(self, state) -> str:
        raise NotImplementedError()


class AttrColumn(Column):
    def __init__(self, name: str, width: int, format, attr):
        if isinstance(format, str):
            self.format = StringFormatter(format)
        else:
            self.format = format

        super().__init__(name, width)

        self.attr = attr

    def content(self, state) -> str:
        return self.format(self.attr(state))


class StateAttr:
    def __init__(self, name: str):
        self.name = name

    def __call__(self, state):
        return state[self.name]


class Display:
    def __init__(self, cols, interval=None):
        self.cols = cols
        self.interval = interval

        self.timer = None
        if self.interval is not None:
            assert self.interval >= 0
            self.timer = SimpleTimer()

    def should_display(self):
        if self.timer is None:
            return True

        return self.timer.elapsed() >= self.interval

    @property
    def header(self) -> str:
        return " ".join([col.header for col in self.cols])

    def row(self, state) -> str:
        if self.timer is not None:
            self.timer.reset()

        return " ".join([col.content(state) for col in self.cols])


def optimizer_display(params: Params) -> Display:
    cols: List[Column] = []

    cols.append(AttrColumn("Iter", 6, BoldFormatter("{:6d}"), StateAttr("iter")))
    cols.append(AttrColumn("Value", 16, "{:16.8e}", StateAttr("value")))
    cols.append(AttrColumn("Min value", 16, "{:16.8e}", StateAttr("min_value")))
    cols.append(AttrColumn("Min lower", 16, "{:16.8e}", StateAttr("min_lower")))
    cols.append(AttrColumn("Gap", 16, "{:16.8e}", StateAttr("gap")))
    cols.append(AttrColumn("Step", 16, "{:16.8e}", StateAttr("step_norm")))
    cols.append(AttrColumn("Planes", 8, "{:8d}", StateAttr("num_hyperplanes")))
    cols.append(AttrColumn("QP", 8, SolveFormatter(), StateAttr("qp_optimal")))

    return Display(cols, interval=params.display_interval)


def print_problem_stats(num_weights: int, params: Params) -> None:
    logger.info(
        "Minimizing oracle over %s weights using %s QP solver",
        num_weights,
        "custom" if params.qp_solver is not None else params.qp_solver_type.name,
    )

    logger.info("          Regularizer: %s", params.lamb)
    logger.info("          Minimum gap: %s", params.min_gap)

    if params.steps > 0:
        logger.info("      Maximum steps: %s", params.steps)
