"""Expert stage: drafts a solution from the analysis."""

from ..agents import ANALYST, EXPERT
from ..context import PipelineContext
from ..prompts import expert_input
from .agent_step import AgentStep


class ExpertStage(AgentStep):
    agent = EXPERT

    def build_input(self, context: PipelineContext) -> str:
        # Placeholder text from a degraded analyst is forwarded verbatim
        analysis = context.result_for(ANALYST.id).text
        return expert_input(self.user_content(context), analysis)
