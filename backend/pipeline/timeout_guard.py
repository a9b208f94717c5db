"""Deadline-bounded execution of a single stage's model call."""

import asyncio
import logging
import time
from typing import Optional

from backend.config import STAGE_TIMEOUT_SECONDS
from backend.providers.base import BaseLLMProvider
from backend.tools.base import ConsolidatorToolset
from .agents import AgentStage
from .models import StageOutcome, StageResult

logger = logging.getLogger(__name__)


def timeout_placeholder(stage: AgentStage) -> str:
    return (
        f"O agente {stage.name} não conseguiu responder no tempo esperado. "
        "Continuando com as informações disponíveis."
    )


def failure_placeholder(stage: AgentStage) -> str:
    return (
        f"Não foi possível obter uma resposta completa do agente {stage.name}. "
        "Continuando com informações limitadas."
    )


def _discard_late_result(task: asyncio.Task) -> None:
    """Consume the outcome of an abandoned model call so it is never observed."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Abandoned model call {task.get_name()} finished with: {error}")


class StageTimeoutGuard:
    """
    Races a stage's model call against a deadline.

    Every model-side exit path becomes a StageResult: ``ok`` with the model's
    text, ``timed_out`` or ``failed`` with a placeholder naming the stage. The
    model call runs as its own task; on timeout the task is cancelled and its
    eventual result dropped. Cancelling the caller cancels the model call and
    re-raises, since that is a request abort rather than a stage failure.
    """

    def __init__(
        self,
        model_client: BaseLLMProvider,
        deadline: float = STAGE_TIMEOUT_SECONDS,
        temperature: Optional[float] = None,
    ):
        self.model_client = model_client
        self.deadline = deadline
        self.temperature = temperature

    async def execute(
        self,
        stage: AgentStage,
        system_prompt: str,
        user_content: str,
        toolset: Optional[ConsolidatorToolset] = None,
        deadline: Optional[float] = None,
    ) -> StageResult:
        timeout = self.deadline if deadline is None else deadline
        started = time.monotonic()

        task = asyncio.create_task(
            self.model_client.complete(
                system_prompt,
                user_content,
                toolset=toolset if stage.uses_tools else None,
                temperature=self.temperature,
            ),
            name=f"stage-{stage.id}",
        )

        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            task.cancel()
            task.add_done_callback(_discard_late_result)
            raise

        elapsed = time.monotonic() - started

        if not done:
            task.cancel()
            task.add_done_callback(_discard_late_result)
            logger.warning(f"Agent {stage.name} timed out after {timeout}s")
            return StageResult(
                stage_id=stage.id,
                text=timeout_placeholder(stage),
                outcome=StageOutcome.TIMED_OUT,
                elapsed=elapsed,
            )

        if task.cancelled():
            logger.error(f"Model call for agent {stage.name} was cancelled")
            return self._failed(stage, elapsed)

        error = task.exception()
        if error is not None:
            logger.error(f"Error in {stage.name} agent: {error}", exc_info=error)
            return self._failed(stage, elapsed)

        content = task.result().content
        if not content or not content.strip():
            logger.error(f"Agent {stage.name} returned an empty response")
            return self._failed(stage, elapsed)

        return StageResult(
            stage_id=stage.id,
            text=content,
            outcome=StageOutcome.OK,
            elapsed=elapsed,
        )

    @staticmethod
    def _failed(stage: AgentStage, elapsed: float) -> StageResult:
        return StageResult(
            stage_id=stage.id,
            text=failure_placeholder(stage),
            outcome=StageOutcome.FAILED,
            elapsed=elapsed,
        )
