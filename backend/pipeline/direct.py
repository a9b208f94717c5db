"""Single-agent responder used by the simple chat mode."""

import logging
from typing import List, Optional

from backend.models import ChatMessage, RequestHints, generate_uuid
from backend.tools.base import ConsolidatorToolset
from .agents import AgentStage
from .executor import validate_messages
from .models import PipelineRun
from .prompts import (
    ARTIFACTS_PROMPT,
    REGULAR_PROMPT,
    analyst_input,
    render_transcript,
    request_hints_prompt,
    stage_system_prompt,
)
from .timeout_guard import StageTimeoutGuard

logger = logging.getLogger(__name__)


ASSISTANT = AgentStage(
    id="assistant",
    name="Assistente",
    description="Resposta direta e rápida com um único agente",
    system_prompt=REGULAR_PROMPT,
    uses_tools=True,
)


class DirectResponder:
    """One guarded, tool-enabled model call; no reasoning trace."""

    def __init__(self, guard: StageTimeoutGuard):
        self.guard = guard

    async def run(
        self,
        messages: List[ChatMessage],
        request_hints: Optional[RequestHints] = None,
        toolset: Optional[ConsolidatorToolset] = None,
        request_id: Optional[str] = None,
    ) -> PipelineRun:
        user_message = validate_messages(messages)
        request_id = request_id or generate_uuid()

        context_prompt = f"{request_hints_prompt(request_hints)}\n\n{ARTIFACTS_PROMPT}"
        result = await self.guard.execute(
            ASSISTANT,
            stage_system_prompt(ASSISTANT.system_prompt, context_prompt),
            analyst_input(user_message.content, render_transcript(messages[:-1])),
            toolset=toolset,
        )
        logger.info(f"Direct response {request_id} finished with outcome {result.outcome.value}")

        return PipelineRun(
            request_id=request_id,
            results=(result,),
            final_answer=result.text,
            reasoning_trace="",
        )
