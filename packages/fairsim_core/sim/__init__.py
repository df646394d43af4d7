"""Simulation engine for FairSim."""

from .conversations import Conversation, ConversationInvariantError, ConversationManager
from .runner import (
    FairSimulation,
    SimulationBusyError,
    build_simulation,
    get_simulation_state,
    reset_simulation,
    reset_simulation_for_tests,
    tick_simulation,
)
from .settings import SimulationSettings
from .state import RECRUITER, STUDENT, Agent, Cell, Obstacle, SpatialGrid

__all__ = [
    "Conversation",
    "ConversationInvariantError",
    "ConversationManager",
    "FairSimulation",
    "SimulationBusyError",
    "build_simulation",
    "get_simulation_state",
    "reset_simulation",
    "reset_simulation_for_tests",
    "tick_simulation",
    "SimulationSettings",
    "RECRUITER",
    "STUDENT",
    "Agent",
    "Cell",
    "Obstacle",
    "SpatialGrid",
]
