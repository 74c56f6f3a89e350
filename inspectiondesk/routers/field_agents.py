from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..auth import Principal, require_admin
from ..deps import get_queries
from ..schemas import InspectionOut, PageOut, PaginationOut
from ..services.inspection_queries import InspectionQueries

router = APIRouter(prefix="/field-agents", tags=["field-agents"])


@router.get("/{user_id}/inspections", response_model=PageOut[InspectionOut])
def field_agent_inspections(
    user_id: int,
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    queries: InspectionQueries = Depends(get_queries),
    _admin: Principal = Depends(require_admin),
):
    rows, pagination = queries.for_field_agent(user_id, page=page, limit=limit)
    return PageOut[InspectionOut](
        data=[InspectionOut.from_row(r) for r in rows],
        pagination=PaginationOut(**pagination),
    )
