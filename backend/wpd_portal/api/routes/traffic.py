from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from wpd_portal.api.deps import get_visit_service
from wpd_portal.core.deps import AdminIdentity, get_current_admin
from wpd_portal.schemas import DailyVisitCount, MessageResponse, TrackVisitRequest, VisitSummary
from wpd_portal.services.visits import VisitService, parse_day

router = APIRouter()


@router.post("/track-visit", response_model=MessageResponse)
def track_visit(payload: TrackVisitRequest, service: VisitService = Depends(get_visit_service)):
    if service.record_visit(payload.visitor_id):
        return {"message": "Visit tracked successfully"}
    return {"message": "Visit already tracked for this visitor today."}


@router.get("/unique-visits", response_model=VisitSummary)
def unique_visits(
    service: VisitService = Depends(get_visit_service),
    admin: AdminIdentity = Depends(get_current_admin),
):
    return service.summary()


@router.get("/unique-visits-daily", response_model=List[DailyVisitCount])
def unique_visits_daily(
    date: Optional[str] = Query(None),
    service: VisitService = Depends(get_visit_service),
    admin: AdminIdentity = Depends(get_current_admin),
):
    day = parse_day(date)
    return [{"date": day, "count": service.unique_visitors_on(day)}]
