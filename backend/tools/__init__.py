"""Tools available to the Consolidator stage."""

from .base import ConsolidatorToolset, TOOL_SPECS, UnknownToolError
from .default import DefaultToolset

__all__ = ["ConsolidatorToolset", "DefaultToolset", "TOOL_SPECS", "UnknownToolError"]
