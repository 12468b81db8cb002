"""
Reaction service: one live like / dislike per (user, article).

Submitting the reaction a user already has removes it; submitting the
other one replaces it.  The decision is made by ``resolve_reaction``, a
pure function, before anything touches the store.
"""
import enum
from typing import NamedTuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quill.cache import cache
from quill.database import flush_or_raise
from quill.models import Reaction, ReactionType
from quill.services.article_service import get_article_or_404


class ReactionOutcome(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    REMOVED = "removed"


class ReactionTransition(NamedTuple):
    outcome: ReactionOutcome
    state: ReactionType | None
    status_code: int


MESSAGES = {
    ReactionOutcome.CREATED: "Successfully added reaction",
    ReactionOutcome.UPDATED: "Successfully updated reaction",
    ReactionOutcome.REMOVED: "Successfully removed reaction",
}


def resolve_reaction(existing: ReactionType | None, requested: ReactionType) -> ReactionTransition:
    if existing is None:
        return ReactionTransition(ReactionOutcome.CREATED, requested, 201)
    if existing == requested:
        return ReactionTransition(ReactionOutcome.REMOVED, None, 200)
    return ReactionTransition(ReactionOutcome.UPDATED, requested, 200)


async def react(
    db: AsyncSession, user_id: int, slug: str, requested: ReactionType
) -> ReactionTransition:
    article = await get_article_or_404(db, slug)

    result = await db.execute(
        select(Reaction).where(Reaction.user_id == user_id, Reaction.article_id == article.id)
    )
    current = result.scalar_one_or_none()
    transition = resolve_reaction(current.reaction if current else None, requested)

    if transition.outcome is ReactionOutcome.CREATED:
        db.add(Reaction(user_id=user_id, article_id=article.id, reaction=requested))
    elif transition.outcome is ReactionOutcome.REMOVED:
        await db.delete(current)
    else:
        current.reaction = requested

    await flush_or_raise(db, conflict_message="A reaction for this article is already being recorded")
    await cache.invalidate_article(slug)
    return transition
