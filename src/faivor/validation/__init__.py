"""Staged structural and execution validation against the model validator."""

from faivor.validation.orchestrator import ValidationOrchestrator

__all__ = ["ValidationOrchestrator"]
