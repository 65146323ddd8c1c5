"""Execution module for fallback orchestration across inference backends."""

from pr_checker.execution.fallback import FallbackOrchestrator
from pr_checker.execution.service import OrchestrationService, TaskRequest, build_service

__all__ = ["FallbackOrchestrator", "OrchestrationService", "TaskRequest", "build_service"]
