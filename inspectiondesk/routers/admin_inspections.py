from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..auth import Principal, require_admin
from ..deps import (
    get_activity_logger,
    get_assignment,
    get_participants,
    get_queries,
    get_workflow,
)
from ..schemas import (
    ActivityLogOut,
    AdminStatsOut,
    AttachFieldAgentIn,
    DeleteInspectionOut,
    InspectionActionOut,
    InspectionOut,
    LOIDecisionIn,
    MessageOut,
    PageOut,
    PaginationOut,
    SendDetailsIn,
    StatusDecisionIn,
)
from ..services.activity_log import ActivityLogger
from ..services.field_agent_assignment import FieldAgentAssignmentService
from ..services.inspection_queries import InspectionQueries
from ..services.inspection_workflow import InspectionWorkflowService
from ..services.participant_details import ParticipantDetailService

router = APIRouter(prefix="/inspections", tags=["inspections"])


# -----------------------------
# Reads
# -----------------------------
@router.get("", response_model=PageOut[InspectionOut])
def list_inspections(
    status: Optional[str] = Query(default=None),
    stage: Optional[str] = Query(default=None),
    property_id: Optional[int] = Query(default=None, alias="propertyId"),
    owner_id: Optional[int] = Query(default=None, alias="ownerId"),
    is_negotiating: Optional[bool] = Query(default=None, alias="isNegotiating"),
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    queries: InspectionQueries = Depends(get_queries),
    _admin: Principal = Depends(require_admin),
):
    rows, pagination = queries.admin_list(
        status=status,
        stage=stage,
        property_id=property_id,
        owner_id=owner_id,
        is_negotiating=is_negotiating,
        page=page,
        limit=limit,
    )
    return PageOut[InspectionOut](
        data=[InspectionOut.from_row(r) for r in rows],
        pagination=PaginationOut(**pagination),
    )


@router.get("/stats", response_model=AdminStatsOut)
def inspection_stats(
    queries: InspectionQueries = Depends(get_queries),
    _admin: Principal = Depends(require_admin),
):
    return AdminStatsOut(**queries.admin_stats())


@router.get("/logs", response_model=PageOut[ActivityLogOut])
def inspection_logs(
    inspection_id: Optional[int] = Query(default=None, alias="inspectionId"),
    property_id: Optional[int] = Query(default=None, alias="propertyId"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    activity: ActivityLogger = Depends(get_activity_logger),
    _admin: Principal = Depends(require_admin),
):
    rows, pagination = activity.list(inspection_id=inspection_id, property_id=property_id, page=page, limit=limit)
    return PageOut[ActivityLogOut](
        data=[ActivityLogOut.from_record(r) for r in rows],
        pagination=PaginationOut(**pagination),
    )


@router.get("/{inspection_id}", response_model=InspectionOut)
def get_inspection(
    inspection_id: int,
    queries: InspectionQueries = Depends(get_queries),
    _admin: Principal = Depends(require_admin),
):
    return InspectionOut.from_row(queries.admin_get(inspection_id))


# -----------------------------
# Decisions
# -----------------------------
@router.patch("/{inspection_id}/status", response_model=InspectionActionOut)
def update_inspection_status(
    inspection_id: int,
    payload: StatusDecisionIn,
    workflow: InspectionWorkflowService = Depends(get_workflow),
    p: Principal = Depends(require_admin),
):
    row = workflow.update_status(inspection_id, payload.status, actor=p)
    return InspectionActionOut(message=f"Inspection status updated to {row.status}", data=InspectionOut.from_row(row))


@router.patch("/{inspection_id}/approveOrRejectLOI", response_model=InspectionActionOut)
def approve_or_reject_loi(
    inspection_id: int,
    payload: LOIDecisionIn,
    workflow: InspectionWorkflowService = Depends(get_workflow),
    p: Principal = Depends(require_admin),
):
    row = workflow.decide_loi(inspection_id, payload.status, reason=payload.reason, actor=p)
    verb = "approved" if row.approve_loi else "rejected"
    return InspectionActionOut(message=f"LOI has been {verb} successfully", data=InspectionOut.from_row(row))


# -----------------------------
# Field agent dispatch
# -----------------------------
@router.post("/{inspection_id}/attachFieldAgent", response_model=InspectionActionOut)
def attach_field_agent(
    inspection_id: int,
    payload: AttachFieldAgentIn,
    assignment: FieldAgentAssignmentService = Depends(get_assignment),
    p: Principal = Depends(require_admin),
):
    row = assignment.attach(inspection_id, payload.field_agent_id, actor=p)
    return InspectionActionOut(message="Field agent assigned successfully", data=InspectionOut.from_row(row))


@router.delete("/{inspection_id}/removeFieldAgent", response_model=InspectionActionOut)
def remove_field_agent(
    inspection_id: int,
    assignment: FieldAgentAssignmentService = Depends(get_assignment),
    p: Principal = Depends(require_admin),
):
    row = assignment.remove(inspection_id, actor=p)
    return InspectionActionOut(message="Field agent removed successfully", data=InspectionOut.from_row(row))


@router.delete("/{inspection_id}/delete", response_model=DeleteInspectionOut)
def delete_inspection(
    inspection_id: int,
    assignment: FieldAgentAssignmentService = Depends(get_assignment),
    p: Principal = Depends(require_admin),
):
    out = assignment.delete_inspection_and_transaction(inspection_id, actor=p)
    return DeleteInspectionOut(message="Inspection and related transaction deleted successfully", **out)


@router.post("/{inspection_id}/sendDetails", response_model=MessageOut)
def send_participant_details(
    inspection_id: int,
    payload: SendDetailsIn,
    participants: ParticipantDetailService = Depends(get_participants),
    _admin: Principal = Depends(require_admin),
):
    return MessageOut(message=participants.send_details(inspection_id, payload.send))
