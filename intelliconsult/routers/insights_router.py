from fastapi import APIRouter, Depends

from ..core.dependencies import get_current_caller, get_intake_insights_service
from ..application.services.access_control import Caller
from ..application.services.intake_insights_service import IntakeInsightsService
from ..schemas.appointments.appointment import SummaryResponse, TriageResponse, TriageResult

router = APIRouter(prefix="/api", tags=["AI Insights"])


@router.get("/triage/appointment/{appointment_id}", response_model=TriageResponse)
def appointment_triage(
    appointment_id: str,
    caller: Caller = Depends(get_current_caller),
    insights: IntakeInsightsService = Depends(get_intake_insights_service),
):
    assessment, cached = insights.triage(caller, appointment_id)
    return TriageResponse(
        triage=TriageResult(
            priority=assessment.priority,
            priority_level=assessment.priority_level,
            label=assessment.label,
        ),
        cached=cached,
    )


@router.get("/summary/appointment/{appointment_id}", response_model=SummaryResponse)
def appointment_summary(
    appointment_id: str,
    caller: Caller = Depends(get_current_caller),
    insights: IntakeInsightsService = Depends(get_intake_insights_service),
):
    summary, generated_at, cached = insights.summary(caller, appointment_id)
    return SummaryResponse(summary=summary, generated_at=generated_at, cached=cached)
