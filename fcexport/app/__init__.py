"""Export run orchestration."""
from .orchestrator import LIST_STAGE, Orchestrator, RunResult

__all__ = ["LIST_STAGE", "Orchestrator", "RunResult"]
