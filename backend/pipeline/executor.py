"""Agent pipeline executor: Analyst -> Expert -> Critic -> Consolidator."""

import logging
from typing import List, Optional

from backend.errors import PipelineFailure, PreconditionViolation
from backend.models import ChatMessage, RequestHints, generate_uuid
from backend.providers.base import BaseLLMProvider
from backend.tools.base import ConsolidatorToolset
from .agents import AGENTS, AgentStage
from .base import Pipeline
from .context import (
    PipelineContext,
    CONTEXT_PROMPT,
    REQUEST_ID,
    TOOLSET,
    TRANSCRIPT,
    USER_CONTENT,
)
from .models import PipelineRun, StageResult
from .prompts import render_transcript, request_hints_prompt
from .stages import AnalystStage, ConsolidatorStage, CriticStage, ExpertStage
from .timeout_guard import StageTimeoutGuard

logger = logging.getLogger(__name__)


def build_reasoning_trace(results: List[StageResult]) -> str:
    """'<StageName>: <text>' per stage, separated by blank lines."""
    names = {agent.id: agent.name for agent in AGENTS}
    return "\n\n".join(
        f"{names.get(result.stage_id, result.stage_id)}: {result.text.strip()}"
        for result in results
    )


def create_assistant_content(run: PipelineRun) -> str:
    """Persisted assistant message: reasoning in a thinking block, then the answer."""
    if not run.reasoning_trace:
        return run.final_answer
    return f"<thinking>\n{run.reasoning_trace}\n</thinking>\n\n{run.final_answer}"


def validate_messages(messages: List[ChatMessage]) -> ChatMessage:
    """Return the trailing user message or raise PreconditionViolation."""
    if not messages:
        raise PreconditionViolation("Messages array is required and must not be empty")
    last = messages[-1]
    if last.role != "user":
        raise PreconditionViolation("Last message must be from the user")
    return last


class AgentPipelineExecutor:
    """
    Runs the fixed four-stage agent pipeline for one request.

    Stages are strictly sequential; each stage sees its predecessor's output
    even when that output is a timeout/failure placeholder. Stage problems
    degrade content, they never abort the run. Only a structurally invalid
    request (PreconditionViolation) or an unexpected error escaping the stage
    loop (PipelineFailure) stops it.
    """

    def __init__(
        self,
        model_client: BaseLLMProvider,
        guard: Optional[StageTimeoutGuard] = None,
    ):
        self.guard = guard or StageTimeoutGuard(model_client)
        self.pipeline = Pipeline(
            [
                AnalystStage(self.guard),
                ExpertStage(self.guard),
                CriticStage(self.guard),
                ConsolidatorStage(self.guard),
            ]
        )

    @property
    def agents(self) -> List[AgentStage]:
        return [stage.agent for stage in self.pipeline.stages]

    async def run(
        self,
        messages: List[ChatMessage],
        request_hints: Optional[RequestHints] = None,
        toolset: Optional[ConsolidatorToolset] = None,
        request_id: Optional[str] = None,
    ) -> PipelineRun:
        """
        Execute the pipeline over a conversation whose last message is the user's.

        Args:
            messages: Chronological conversation, trailing user message included
            request_hints: Location hints folded into every system prompt
            toolset: Tools made available to the Consolidator stage only
            request_id: Identifier for logs and the resulting PipelineRun

        Returns:
            PipelineRun with four StageResults, final answer and reasoning trace

        Raises:
            PreconditionViolation: If messages are empty or not user-terminated
            PipelineFailure: If an unexpected error escapes the stage loop
        """
        user_message = validate_messages(messages)
        request_id = request_id or generate_uuid()
        user_content = user_message.content

        preview = user_content[:100] + ("..." if len(user_content) > 100 else "")
        logger.info(f"[Swarm] Starting orchestration {request_id}: \"{preview}\"")

        context = (
            PipelineContext()
            .set(REQUEST_ID, request_id)
            .set(USER_CONTENT, user_content)
            .set(TRANSCRIPT, render_transcript(messages[:-1]))
            .set(CONTEXT_PROMPT, request_hints_prompt(request_hints))
            .set(TOOLSET, toolset)
        )

        try:
            context = await self.pipeline.execute(context)
        except (PreconditionViolation, PipelineFailure):
            raise
        except Exception as e:
            logger.error(f"[Swarm] Orchestration {request_id} failed: {e}", exc_info=True)
            raise PipelineFailure(
                f"Falha na orquestração do swarm: {e}", request_id=request_id
            ) from e

        results = list(context.results)
        if len(results) != len(self.pipeline):
            raise PipelineFailure(
                f"Expected {len(self.pipeline)} stage results, got {len(results)}",
                request_id=request_id,
            )

        run = PipelineRun(
            request_id=request_id,
            results=tuple(results),
            final_answer=results[-1].text,
            reasoning_trace=build_reasoning_trace(results[:-1]),
        )

        if run.degraded_stages:
            logger.warning(f"[Swarm] {request_id} degraded stages: {run.degraded_stages}")
        logger.info(f"[Swarm] Orchestration {request_id} complete")
        return run


async def run_pipeline(
    model_client: BaseLLMProvider,
    messages: List[ChatMessage],
    request_hints: Optional[RequestHints] = None,
    toolset: Optional[ConsolidatorToolset] = None,
) -> PipelineRun:
    """Convenience wrapper: build an executor and run it once."""
    executor = AgentPipelineExecutor(model_client)
    return await executor.run(messages, request_hints, toolset)
