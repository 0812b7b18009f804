"""
Scripted scenarios - sequences of browser steps run on one session.
"""

from .base import Scenario, Step, STEP_ACTIONS
from .router import StepRouter
from .runner import ScenarioRunner

__all__ = [
    "Scenario",
    "Step",
    "STEP_ACTIONS",
    "StepRouter",
    "ScenarioRunner",
]
