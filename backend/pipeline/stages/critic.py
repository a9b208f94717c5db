"""Critic stage: reviews the expert's proposal."""

from ..agents import CRITIC, EXPERT
from ..context import PipelineContext
from ..prompts import critic_input
from .agent_step import AgentStep


class CriticStage(AgentStep):
    agent = CRITIC

    def build_input(self, context: PipelineContext) -> str:
        proposal = context.result_for(EXPERT.id).text
        return critic_input(self.user_content(context), proposal)
