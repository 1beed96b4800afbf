"""nextscaffold: configuration-driven Next.js project generator."""

from .errors import UnknownOperationError
from .models import Architecture, ProjectConfiguration, ToolResult
from .orchestrator import PIPELINE_ORDER, TOOLS, ToolOrchestrator
from .resolver import resolve_config

__version__ = "0.1.0"

__all__ = [
    "Architecture",
    "PIPELINE_ORDER",
    "ProjectConfiguration",
    "TOOLS",
    "ToolOrchestrator",
    "ToolResult",
    "UnknownOperationError",
    "__version__",
    "resolve_config",
]
