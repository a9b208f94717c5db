"""Consolidator stage: writes the final answer, the only stage with tools."""

from ..agents import ANALYST, CONSOLIDATOR, CRITIC, EXPERT
from ..context import PipelineContext, CONTEXT_PROMPT, TOOLSET
from ..prompts import ARTIFACTS_PROMPT, consolidator_input
from .agent_step import AgentStep


class ConsolidatorStage(AgentStep):
    agent = CONSOLIDATOR

    def build_input(self, context: PipelineContext) -> str:
        return consolidator_input(
            self.user_content(context),
            context.result_for(ANALYST.id).text,
            context.result_for(EXPERT.id).text,
            context.result_for(CRITIC.id).text,
        )

    def build_context_prompt(self, context: PipelineContext) -> str:
        return f"{context.get(CONTEXT_PROMPT, '')}\n\n{ARTIFACTS_PROMPT}"

    def toolset(self, context: PipelineContext):
        return context.get(TOOLSET)
