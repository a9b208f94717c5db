"""Multi-agent reasoning pipeline.

- AgentStage profiles define the fixed Analyst -> Expert -> Critic ->
  Consolidator sequence
- StageTimeoutGuard bounds every model call and degrades instead of failing
- AgentPipelineExecutor threads each stage's output into the next through an
  immutable PipelineContext and assembles the PipelineRun
"""

from .agents import AGENTS, AGENT_IDS, AgentStage
from .base import Stage, Pipeline
from .context import PipelineContext, ContextKey
from .direct import DirectResponder
from .executor import AgentPipelineExecutor, create_assistant_content, run_pipeline
from .models import PipelineRun, StageOutcome, StageResult
from .timeout_guard import StageTimeoutGuard

__all__ = [
    "AGENTS",
    "AGENT_IDS",
    "AgentStage",
    "Stage",
    "Pipeline",
    "PipelineContext",
    "ContextKey",
    "DirectResponder",
    "AgentPipelineExecutor",
    "create_assistant_content",
    "run_pipeline",
    "PipelineRun",
    "StageOutcome",
    "StageResult",
    "StageTimeoutGuard",
]
