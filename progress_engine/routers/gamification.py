"""Gamification endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
import structlog

from progress_engine.core.dependencies import get_learner_session, get_registry
from progress_engine.gamification.catalogue import BadgeNotFoundError
from progress_engine.models.gamification import (
    AchievementDefinition,
    BadgeCategory,
    BadgeProgress,
    BadgeStats,
    Rarity,
)
from progress_engine.models.progress import UnlockedAchievement
from progress_engine.progress.session import LearnerSession, SessionRegistry

logger = structlog.get_logger()
router = APIRouter()


@router.get("/badges", response_model=List[AchievementDefinition])
async def get_all_badges(
    category: Optional[BadgeCategory] = Query(None),
    rarity: Optional[Rarity] = Query(None),
    registry: SessionRegistry = Depends(get_registry)
):
    """Get all available badges in catalogue order."""
    catalogue = registry.engine.catalogue
    badges = catalogue.by_category(category) if category else catalogue.definitions()

    if rarity:
        matching = {d.id for d in catalogue.by_rarity(rarity)}
        badges = [b for b in badges if b.id in matching]

    return badges


@router.get("/badges/unlocked", response_model=List[UnlockedAchievement])
async def get_unlocked_badges(session: LearnerSession = Depends(get_learner_session)):
    """Get badges earned by the learner, oldest first."""
    return session.state.achievements


@router.get("/badges/{badge_id}/progress", response_model=BadgeProgress)
async def get_badge_progress(
    badge_id: str,
    session: LearnerSession = Depends(get_learner_session)
):
    """Get the learner's progress towards a badge."""
    try:
        return session.progress_towards(badge_id)
    except BadgeNotFoundError:
        raise HTTPException(status_code=404, detail="Badge not found")


@router.get("/stats", response_model=BadgeStats)
async def get_badge_stats(session: LearnerSession = Depends(get_learner_session)):
    """Get a summary of the learner's badge collection."""
    return session.badge_stats()
