"""
Workflow routes - admin triage and field worker updates.
"""

from fastapi import APIRouter, Depends
from typing import Dict, List

from app.models.user import User
from app.models.workflow import AssignRequest, StatusUpdateRequest, WorkerUpdateRequest
from app.services.workflow_service import get_workflow_service
from app.utils.security import get_current_user, require_admin, require_field_worker

router = APIRouter(prefix="/api/workflows", tags=["Workflows"])


@router.put("/{issue_id}/status")
def update_status(issue_id: str, body: StatusUpdateRequest, admin: User = Depends(require_admin)):
    """Change issue status. Resolving rewards the reporter."""
    return get_workflow_service().update_status(issue_id, body, admin)


@router.put("/{issue_id}/assign")
def assign_issue(issue_id: str, body: AssignRequest, admin: User = Depends(require_admin)):
    """Assign to a department and/or field worker."""
    return get_workflow_service().assign(issue_id, body, admin)


@router.put("/{issue_id}/worker-update")
def worker_update(issue_id: str, body: WorkerUpdateRequest, worker: User = Depends(require_field_worker)):
    """Progress update with optional proof of work."""
    return get_workflow_service().worker_update(issue_id, body, worker)


@router.get("/assigned/{worker_id}", response_model=List[Dict])
def get_assigned(worker_id: str, user: User = Depends(get_current_user)):
    return get_workflow_service().get_assigned(worker_id)
