"""Application services and page view-models."""

from .auth import AuthPage
from .initiative_form import InitiativeFormPage
from .initiatives import InitiativeModal, InitiativesPage
from .monitoring import MonitoringPage
from .mutations import MutationResult, run_mutation
from .portal import (
    PageContext,
    PortalService,
    configure_api_client,
    get_portal_service,
    reset_portal_state,
)
from .timeline import TimelinePage
from .workflow import WorkflowPage, next_pending_stage

__all__ = [
    "AuthPage",
    "InitiativeFormPage",
    "InitiativeModal",
    "InitiativesPage",
    "MonitoringPage",
    "MutationResult",
    "PageContext",
    "PortalService",
    "TimelinePage",
    "WorkflowPage",
    "configure_api_client",
    "get_portal_service",
    "next_pending_stage",
    "reset_portal_state",
    "run_mutation",
]
