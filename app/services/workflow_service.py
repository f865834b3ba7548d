"""
Workflow Service - admin triage and field worker progress on citizen issues.

Every status change appends a StatusTimelineEntry; the timeline is the audit
trail shown on the issue detail screen.
"""

from typing import Dict, List, Optional
import logging

from app.core.errors import InvalidInputError
from app.models.issue import (
    ANONYMOUS_USER_ID,
    Issue,
    IssueStatus,
    ResolutionProof,
    StatusTimelineEntry,
    utc_now,
)
from app.models.user import User
from app.models.workflow import AssignRequest, StatusUpdateRequest, WorkerUpdateRequest
from app.repositories import Repositories, get_repositories
from app.services.gamification_service import (
    RESOLVED_BY_ADMIN_POINTS,
    RESOLVED_BY_WORKER_POINTS,
    GamificationService,
)
from app.services.issue_service import enrich_issues
from app.services.notification_service import NotificationService
from app.utils.field_mapping import issue_to_api

logger = logging.getLogger(__name__)

DEFAULT_PROOF_IMAGE = "/public/images/brokenfootpath.jpg"
DEFAULT_WORKER_REMARKS = "Work completed and verified by site visit."


def parse_status(value: str) -> IssueStatus:
    try:
        return IssueStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in IssueStatus)
        raise InvalidInputError(f"Invalid status '{value}'. Allowed: {allowed}")


def _has_owner(issue: Issue) -> bool:
    return issue.user_id not in (None, ANONYMOUS_USER_ID)


class WorkflowService:
    """Service for issue status, assignment and resolution."""

    def __init__(
        self,
        repositories: Repositories,
        gamification: Optional[GamificationService] = None,
        notifier: Optional[NotificationService] = None,
    ):
        self.repositories = repositories
        self.issues = repositories.issues
        self.gamification = gamification or GamificationService(repositories)
        self.notifier = notifier or NotificationService(repositories)

    def update_status(self, issue_id: str, body: StatusUpdateRequest, admin: User) -> Dict:
        """
        Admin status change. Resolving credits the reporter with points and a
        resolved report.
        """
        new_status = parse_status(body.status)

        def apply(issue: Issue) -> Issue:
            issue.status = new_status
            issue.status_timeline.append(StatusTimelineEntry(
                status=new_status.value,
                updated_by=admin.id,
                comment=body.comment or f"Status changed to {new_status.value}",
                dept=admin.department or "Admin",
            ))
            if new_status == IssueStatus.RESOLVED:
                issue.resolved_by = admin.id
            issue.updated_at = utc_now()
            return issue

        issue = self.issues.update_issue(issue_id, apply)
        logger.info(f"🔄 Issue {issue_id} -> {new_status.value} by {admin.id}")

        if _has_owner(issue):
            if new_status == IssueStatus.RESOLVED:
                self.gamification.award_points(issue.user_id, RESOLVED_BY_ADMIN_POINTS, resolved_delta=1)
            suffix = f": {body.comment}" if body.comment else ""
            self.notifier.send_to_user(
                issue.user_id,
                f"Status Update: {issue.title[:30]}...",
                f"Changed to {new_status.value}{suffix}",
                {"type": "status", "issueId": issue.id, "navigationTarget": f"issue/{issue.id}"},
            )

        return issue_to_api(issue)

    def assign(self, issue_id: str, body: AssignRequest, admin: User) -> Dict:
        """
        Set department, assignee and deadline. A still-Submitted issue moves
        to Acknowledged.
        """
        def apply(issue: Issue) -> Issue:
            if body.department_tag:
                issue.department_tag = body.department_tag
            if body.assigned_to:
                issue.assigned_to = body.assigned_to
            if body.deadline:
                issue.deadline = body.deadline
            if issue.status == IssueStatus.SUBMITTED:
                issue.status = IssueStatus.ACKNOWLEDGED
                issue.status_timeline.append(StatusTimelineEntry(
                    status=IssueStatus.ACKNOWLEDGED.value,
                    updated_by=admin.id,
                    comment=f"Assigned to {body.department_tag or 'department'}",
                    dept=body.department_tag or "Municipal Admin",
                ))
            issue.updated_at = utc_now()
            return issue

        issue = self.issues.update_issue(issue_id, apply)
        logger.info(f"📋 Issue {issue_id} assigned (dept={issue.department_tag}, worker={issue.assigned_to})")

        if body.assigned_to:
            address = issue.location.address if issue.location and issue.location.address else "Unknown location"
            self.notifier.send_to_user(
                body.assigned_to,
                "New Task Assigned",
                f"\"{issue.title}\" at {address}",
                {"type": "assignment", "issueId": issue.id, "navigationTarget": f"issue/{issue.id}"},
            )

        return issue_to_api(issue)

    def worker_update(self, issue_id: str, body: WorkerUpdateRequest, worker: User) -> Dict:
        """
        Field worker progress update. Resolving records proof of work and
        credits both the worker and the reporter.
        """
        new_status = parse_status(body.status) if body.status else None

        def apply(issue: Issue) -> Issue:
            if new_status is None:
                return issue
            issue.status = new_status
            issue.status_timeline.append(StatusTimelineEntry(
                status=new_status.value,
                updated_by=worker.id,
                comment=body.comment or "Updated by field worker",
                dept=worker.department or "Field Operations",
            ))
            if new_status == IssueStatus.RESOLVED:
                issue.resolved_by = worker.id
                issue.resolution_proof = ResolutionProof(
                    after_image=body.proof_image or DEFAULT_PROOF_IMAGE,
                    worker_remarks=body.comment or DEFAULT_WORKER_REMARKS,
                    resolved_by=worker.id,
                )
            issue.updated_at = utc_now()
            return issue

        issue = self.issues.update_issue(issue_id, apply)

        if new_status == IssueStatus.RESOLVED:
            logger.info(f"✅ Issue {issue_id} resolved by field worker {worker.id}")
            self.gamification.award_points(worker.id, 0, resolved_delta=1)
            if _has_owner(issue):
                self.gamification.award_points(issue.user_id, RESOLVED_BY_WORKER_POINTS, resolved_delta=1)
                self.notifier.send_to_user(
                    issue.user_id,
                    "Issue Resolved 🎉",
                    f"\"{issue.title}\" was fixed. +{RESOLVED_BY_WORKER_POINTS} points!",
                    {"type": "status", "issueId": issue.id, "navigationTarget": f"issue/{issue.id}"},
                )

        return issue_to_api(issue)

    def get_assigned(self, worker_id: str) -> List[Dict]:
        return enrich_issues(self.repositories, self.issues.get_issues_assigned_to(worker_id))


def get_workflow_service() -> WorkflowService:
    return WorkflowService(get_repositories())
