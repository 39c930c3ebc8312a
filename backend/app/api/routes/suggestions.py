from fastapi import APIRouter, Depends

from app.api.deps import get_default_tuning
from app.schemas.settings import SuggestionTuning
from app.schemas.suggestions import SuggestionRequest, SuggestionResponse
from app.services.suggestions import suggest

router = APIRouter()


@router.post("/suggestions", response_model=SuggestionResponse)
def create_suggestions(
    payload: SuggestionRequest,
    default_tuning: SuggestionTuning = Depends(get_default_tuning),
) -> SuggestionResponse:
    result = suggest(
        payload.cadence,
        payload.interventionists,
        payload.constraints,
        payload.student_constraints,
        payload.committed_sessions,
        interventionist_id=payload.interventionist_id,
        tuning=payload.tuning or default_tuning,
    )
    return SuggestionResponse(
        group_id=payload.cadence.group_id,
        required_sessions_per_week=payload.cadence.required_sessions_per_week,
        slots=result.slots,
        candidates=result.candidates,
        plans=result.plans,
        diagnostics=result.diagnostics,
    )
