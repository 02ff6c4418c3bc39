"""Dashboard data endpoints."""

from fastapi import APIRouter, Depends

from progress_engine.core.dependencies import get_learner_session
from progress_engine.progress.projections import ProgressSummary
from progress_engine.progress.session import LearnerSession

router = APIRouter()


@router.get("/", response_model=ProgressSummary)
async def get_dashboard(session: LearnerSession = Depends(get_learner_session)):
    """Get completion, level and daily goal figures for the learner."""
    return session.summary()
