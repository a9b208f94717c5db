"""Analyst stage: structures the user's question."""

from ..agents import ANALYST
from ..context import PipelineContext, TRANSCRIPT
from ..prompts import analyst_input
from .agent_step import AgentStep


class AnalystStage(AgentStep):
    agent = ANALYST

    def build_input(self, context: PipelineContext) -> str:
        return analyst_input(self.user_content(context), context.get(TRANSCRIPT, ""))
