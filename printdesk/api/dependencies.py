"""
Dependency injection for API routes.

These are set up during app initialization.
"""

from typing import Optional

from printdesk.orchestrator import NoticeBoard, PrintOrchestrator
from printdesk.triggers import TriggerRegistry

# Global instances (set during app init)
_orchestrator: Optional[PrintOrchestrator] = None
_triggers: Optional[TriggerRegistry] = None
_notices: Optional[NoticeBoard] = None


def init_dependencies(
    orchestrator: PrintOrchestrator,
    triggers: TriggerRegistry,
    notices: NoticeBoard
):
    """Initialize global dependencies."""
    global _orchestrator, _triggers, _notices
    _orchestrator = orchestrator
    _triggers = triggers
    _notices = notices


def get_orchestrator() -> PrintOrchestrator:
    """Get print orchestrator instance."""
    if _orchestrator is None:
        raise RuntimeError("Orchestrator not initialized")
    return _orchestrator


def get_triggers() -> TriggerRegistry:
    """Get trigger registry instance."""
    if _triggers is None:
        raise RuntimeError("Trigger registry not initialized")
    return _triggers


def get_notices() -> NoticeBoard:
    """Get notice board instance."""
    if _notices is None:
        raise RuntimeError("Notice board not initialized")
    return _notices
