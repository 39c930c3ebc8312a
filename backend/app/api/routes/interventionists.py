from fastapi import APIRouter

from app.schemas.workload import WorkloadRequest, WorkloadSummary
from app.services.workload import summarize_workload

router = APIRouter()


@router.post("/workload", response_model=WorkloadSummary)
def interventionist_workload(payload: WorkloadRequest) -> WorkloadSummary:
    return summarize_workload(payload.interventionist_id, payload.committed_sessions)
