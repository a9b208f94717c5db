"""Agent stages of the reasoning pipeline, in execution order."""

from .agent_step import AgentStep
from .analyst import AnalystStage
from .expert import ExpertStage
from .critic import CriticStage
from .consolidator import ConsolidatorStage

__all__ = [
    "AgentStep",
    "AnalystStage",
    "ExpertStage",
    "CriticStage",
    "ConsolidatorStage",
]
