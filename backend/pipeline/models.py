"""Result types produced by the agent pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


class StageOutcome(str, Enum):
    """How a stage's model call ended."""

    OK = "ok"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass(frozen=True)
class StageResult:
    """Output of one stage execution. Never mutated after creation."""

    stage_id: str
    text: str
    outcome: StageOutcome
    elapsed: float = 0.0

    @property
    def degraded(self) -> bool:
        return self.outcome is not StageOutcome.OK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage_id": self.stage_id,
            "text": self.text,
            "outcome": self.outcome.value,
            "elapsed": round(self.elapsed, 3),
        }


@dataclass(frozen=True)
class PipelineRun:
    """Finalized result of one pipeline run.

    ``results`` is in execution order. ``reasoning_trace`` covers every stage
    except the last one, whose text is the ``final_answer``.
    """

    request_id: str
    results: Tuple[StageResult, ...] = field(default_factory=tuple)
    final_answer: str = ""
    reasoning_trace: str = ""

    @property
    def stage_ids(self) -> list[str]:
        return [result.stage_id for result in self.results]

    @property
    def degraded_stages(self) -> list[str]:
        return [result.stage_id for result in self.results if result.degraded]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "request_id": self.request_id,
            "results": [result.to_dict() for result in self.results],
            "final_answer": self.final_answer,
            "reasoning_trace": self.reasoning_trace,
        }
