from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..auth import Principal, require_field_agent
from ..deps import get_participants, get_queries, get_reporting
from ..schemas import (
    FieldAgentStatsOut,
    InspectionActionOut,
    InspectionOut,
    ListOut,
    MessageOut,
    PageOut,
    PaginationOut,
    SendDetailsIn,
    SubmitReportIn,
)
from ..services.inspection_queries import InspectionQueries
from ..services.inspection_reporting import InspectionReportingService
from ..services.participant_details import ParticipantDetailService

router = APIRouter(prefix="/inspectionsFieldAgent", tags=["field-agent"])


@router.get("/fetchAll", response_model=PageOut[InspectionOut])
def fetch_all(
    status: Optional[str] = Query(default=None),
    inspection_type: Optional[str] = Query(default=None, alias="inspectionType"),
    inspection_mode: Optional[str] = Query(default=None, alias="inspectionMode"),
    stage: Optional[str] = Query(default=None),
    property_id: Optional[int] = Query(default=None, alias="propertyId"),
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    queries: InspectionQueries = Depends(get_queries),
    p: Principal = Depends(require_field_agent),
):
    rows, pagination = queries.agent_list(
        p.user_id,
        status=status,
        inspection_type=inspection_type,
        inspection_mode=inspection_mode,
        stage=stage,
        property_id=property_id,
        page=page,
        limit=limit,
    )
    return PageOut[InspectionOut](
        data=[InspectionOut.from_row(r) for r in rows],
        pagination=PaginationOut(**pagination),
    )


@router.get("/fetchRecent", response_model=ListOut[InspectionOut])
def fetch_recent(
    queries: InspectionQueries = Depends(get_queries),
    p: Principal = Depends(require_field_agent),
):
    return ListOut[InspectionOut](data=[InspectionOut.from_row(r) for r in queries.agent_recent(p.user_id)])


@router.get("/stats", response_model=FieldAgentStatsOut)
def stats(
    queries: InspectionQueries = Depends(get_queries),
    p: Principal = Depends(require_field_agent),
):
    return FieldAgentStatsOut(**queries.agent_stats(p.user_id))


@router.get("/{inspection_id}", response_model=InspectionOut)
def get_one(
    inspection_id: int,
    queries: InspectionQueries = Depends(get_queries),
    p: Principal = Depends(require_field_agent),
):
    return InspectionOut.from_row(queries.agent_get(inspection_id, p.user_id))


@router.post("/{inspection_id}/startInspection", response_model=InspectionActionOut)
def start_inspection(
    inspection_id: int,
    reporting: InspectionReportingService = Depends(get_reporting),
    p: Principal = Depends(require_field_agent),
):
    row = reporting.start(inspection_id, actor=p)
    return InspectionActionOut(message="Inspection started", data=InspectionOut.from_row(row))


@router.post("/{inspection_id}/stopInspection", response_model=InspectionActionOut)
def stop_inspection(
    inspection_id: int,
    reporting: InspectionReportingService = Depends(get_reporting),
    p: Principal = Depends(require_field_agent),
):
    row = reporting.complete(inspection_id, actor=p)
    return InspectionActionOut(message="Inspection marked as completed", data=InspectionOut.from_row(row))


@router.post("/{inspection_id}/submitReport", response_model=InspectionActionOut)
def submit_report(
    inspection_id: int,
    payload: SubmitReportIn,
    reporting: InspectionReportingService = Depends(get_reporting),
    p: Principal = Depends(require_field_agent),
):
    row = reporting.submit(
        inspection_id,
        buyer_present=payload.buyer_present,
        seller_present=payload.seller_present,
        buyer_interest=payload.buyer_interest,
        notes=payload.notes,
        actor=p,
    )
    return InspectionActionOut(message="Inspection report submitted", data=InspectionOut.from_row(row))


@router.post("/{inspection_id}/sendDetails", response_model=MessageOut)
def send_details(
    inspection_id: int,
    payload: SendDetailsIn,
    participants: ParticipantDetailService = Depends(get_participants),
    _agent: Principal = Depends(require_field_agent),
):
    return MessageOut(message=participants.send_details(inspection_id, payload.send))
