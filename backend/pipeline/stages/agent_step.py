"""Shared execution logic for the agent stages."""

from abc import abstractmethod

from ..agents import AgentStage
from ..base import Stage
from ..context import PipelineContext, CONTEXT_PROMPT, USER_CONTENT
from ..prompts import stage_system_prompt
from ..timeout_guard import StageTimeoutGuard


class AgentStep(Stage):
    """
    Runs one agent through the timeout guard and appends its StageResult.

    Subclasses only decide what the agent sees: ``build_input`` turns the
    context into the user turn and ``build_context_prompt`` may extend the
    shared context prompt folded into the system prompt.
    """

    agent: AgentStage

    def __init__(self, guard: StageTimeoutGuard):
        self.guard = guard

    @property
    def name(self) -> str:
        return self.agent.name

    @abstractmethod
    def build_input(self, context: PipelineContext) -> str:
        pass

    def build_context_prompt(self, context: PipelineContext) -> str:
        return context.get(CONTEXT_PROMPT, "")

    def toolset(self, context: PipelineContext):
        return None

    async def execute(self, context: PipelineContext) -> PipelineContext:
        result = await self.guard.execute(
            self.agent,
            stage_system_prompt(self.agent.system_prompt, self.build_context_prompt(context)),
            self.build_input(context),
            toolset=self.toolset(context),
        )
        return context.with_result(result)

    @staticmethod
    def user_content(context: PipelineContext) -> str:
        return context.get(USER_CONTENT, "")
