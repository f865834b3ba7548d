"""
Request bodies for admin triage and field worker updates.

Status arrives as a plain string and is checked against IssueStatus by the
workflow service so an unknown value is reported as invalid input.
"""

from pydantic import BaseModel, Field
from typing import Optional


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., min_length=1)
    comment: Optional[str] = Field(None, max_length=1000)


class AssignRequest(BaseModel):
    department_tag: Optional[str] = Field(None, alias="departmentTag")
    assigned_to: Optional[str] = Field(None, alias="assignedTo")
    deadline: Optional[str] = None

    class Config:
        populate_by_name = True


class WorkerUpdateRequest(BaseModel):
    status: Optional[str] = None
    proof_image: Optional[str] = Field(None, alias="proofImage")
    comment: Optional[str] = Field(None, max_length=1000)

    class Config:
        populate_by_name = True
