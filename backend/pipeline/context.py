"""Pipeline context for carrying state through agent stages."""

from typing import Any, Dict, Tuple
from dataclasses import dataclass, field

from .models import StageResult


@dataclass
class ContextKey:
    """Type-safe context key identifier."""

    name: str

    def __str__(self) -> str:
        return self.name


# Keys shared by the agent stages
REQUEST_ID = ContextKey("request_id")
USER_CONTENT = ContextKey("user_content")
TRANSCRIPT = ContextKey("transcript")
CONTEXT_PROMPT = ContextKey("context_prompt")
TOOLSET = ContextKey("toolset")
STAGE_RESULTS = ContextKey("stage_results")


@dataclass
class PipelineContext:
    """
    Immutable context that flows through pipeline stages.

    Each stage receives a context and produces a new context with its
    StageResult appended. Context is never mutated in place.
    """

    _data: Dict[str, Any] = field(default_factory=dict)
    _metadata: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: ContextKey, default: Any = None) -> Any:
        """Get value from context."""
        return self._data.get(str(key), default)

    def set(self, key: ContextKey, value: Any) -> "PipelineContext":
        """Return a new context with the key set."""
        new_data = self._data.copy()
        new_data[str(key)] = value
        return PipelineContext(_data=new_data, _metadata=self._metadata.copy())

    def has(self, key: ContextKey) -> bool:
        """Check if key exists in context."""
        return str(key) in self._data

    def get_metadata(self, key: str, default: Any = None) -> Any:
        """Get metadata value (for internal pipeline use)."""
        return self._metadata.get(key, default)

    def set_metadata(self, key: str, value: Any) -> "PipelineContext":
        """Return a new context with metadata set."""
        new_metadata = self._metadata.copy()
        new_metadata[key] = value
        return PipelineContext(_data=self._data.copy(), _metadata=new_metadata)

    @property
    def results(self) -> Tuple[StageResult, ...]:
        """Stage results so far, in execution order."""
        return self.get(STAGE_RESULTS, ())

    def result_for(self, stage_id: str) -> StageResult:
        """Result of an already executed stage."""
        for result in self.results:
            if result.stage_id == stage_id:
                return result
        raise KeyError(f"Stage {stage_id} has not run yet")

    def with_result(self, result: StageResult) -> "PipelineContext":
        """Return a new context with a stage result appended."""
        return self.set(STAGE_RESULTS, self.results + (result,))
