"""Offline config search: explorer, Pareto selection and the stage cost model.

The two-stage driver lives in ``memrag.optimize.optimizer``; it builds on the
evaluation harness, which itself records into the cost model here.
"""

from .cost_model import CostModel, NodeStats  # noqa: F401
from .explorer import ConfigSpaceExhaustedError, enumerate_config_space, sample_configs  # noqa: F401
from .pareto import ParetoPoint, dominates, pareto_front  # noqa: F401

__all__ = [
    "ConfigSpaceExhaustedError",
    "CostModel",
    "NodeStats",
    "ParetoPoint",
    "dominates",
    "enumerate_config_space",
    "pareto_front",
    "sample_configs",
]
