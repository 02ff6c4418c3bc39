"""Progress tracking endpoints."""

from fastapi import APIRouter, Depends
import structlog

from progress_engine.core.dependencies import get_learner_session
from progress_engine.models.progress import ProgressState
from progress_engine.progress.session import LearnerSession
from progress_engine.schemas.progress import (
    ActivityCreate,
    ConceptProgressUpdate,
    ImportRequest,
    ImportResponse,
    PreferencesUpdate,
    ProjectProgressUpdate,
    StreakUpdate,
    TimeSpentCreate,
    TransitionResponse,
)

logger = structlog.get_logger()
router = APIRouter()


async def _transition(session: LearnerSession, events) -> TransitionResponse:
    if not session.autosave:
        await session.flush()
    return TransitionResponse(state=session.state, unlocked=events)


@router.get("/", response_model=ProgressState)
async def get_progress(session: LearnerSession = Depends(get_learner_session)):
    """Get the learner's full progress state."""
    return session.state


@router.post("/concepts/{concept_id}", response_model=TransitionResponse)
async def update_concept_progress(
    concept_id: str,
    update: ConceptProgressUpdate,
    session: LearnerSession = Depends(get_learner_session)
):
    """Record progress on a concept."""
    events = session.update_concept(concept_id, **update.model_dump(exclude_none=True))
    return await _transition(session, events)


@router.post("/projects/{project_id}", response_model=TransitionResponse)
async def update_project_progress(
    project_id: str,
    update: ProjectProgressUpdate,
    session: LearnerSession = Depends(get_learner_session)
):
    """Record progress on a project."""
    events = session.update_project(project_id, **update.model_dump(exclude_none=True))
    return await _transition(session, events)


@router.post("/time", response_model=TransitionResponse)
async def add_time_spent(
    payload: TimeSpentCreate,
    session: LearnerSession = Depends(get_learner_session)
):
    """Add minutes to the learner's total time."""
    events = session.add_time_spent(payload.minutes)
    return await _transition(session, events)


@router.post("/activity", response_model=TransitionResponse)
async def record_activity(
    payload: ActivityCreate,
    session: LearnerSession = Depends(get_learner_session)
):
    """Record quiz results and practice counters."""
    events = session.record_activity(**payload.model_dump())
    return await _transition(session, events)


@router.post("/streak", response_model=TransitionResponse)
async def update_streak(
    update: StreakUpdate,
    session: LearnerSession = Depends(get_learner_session)
):
    """Overwrite streak fields."""
    events = session.update_streak(**update.model_dump(exclude_none=True))
    return await _transition(session, events)


@router.patch("/preferences", response_model=TransitionResponse)
async def update_preferences(
    update: PreferencesUpdate,
    session: LearnerSession = Depends(get_learner_session)
):
    """Change learner preferences."""
    events = session.update_preferences(**update.model_dump(exclude_none=True))
    return await _transition(session, events)


@router.post("/session/start", response_model=TransitionResponse)
async def start_session(session: LearnerSession = Depends(get_learner_session)):
    """Mark the start of a learning session and advance the streak."""
    events = session.start_session()
    return await _transition(session, events)


@router.post("/reset", response_model=TransitionResponse)
async def reset_progress(session: LearnerSession = Depends(get_learner_session)):
    """Discard all progress."""
    events = session.reset()
    logger.info("Progress reset", learner_id=session.learner_id)
    return await _transition(session, events)


@router.get("/export")
async def export_progress(session: LearnerSession = Depends(get_learner_session)):
    """Export progress as text."""
    return {"data": session.export()}


@router.post("/import", response_model=ImportResponse)
async def import_progress(
    payload: ImportRequest,
    session: LearnerSession = Depends(get_learner_session)
):
    """Replace progress with previously exported text."""
    success = session.import_(payload.data)
    if success and not session.autosave:
        await session.flush()
    return ImportResponse(success=success)
