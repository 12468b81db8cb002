"""
Favorite service: same duplicate / missing rules as bookmarks, tracked
in its own table so the two never interfere.
"""
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from quill.database import flush_or_raise
from quill.errors import Conflict, NotFound
from quill.models import FavoriteArticle
from quill.services.article_service import get_article_or_404

ALREADY_FAVORITED = "Article has already been favorited"
NOT_FAVORITED = "This article is not currently favorited"


def _favorite_to_dict(entry: FavoriteArticle) -> dict:
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "article_slug": entry.article_slug,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


async def favorite(db: AsyncSession, user_id: int, slug: str) -> dict:
    await get_article_or_404(db, slug)

    existing = await db.execute(
        select(FavoriteArticle.id).where(
            FavoriteArticle.user_id == user_id, FavoriteArticle.article_slug == slug
        )
    )
    if existing.first() is not None:
        raise Conflict(ALREADY_FAVORITED)

    entry = FavoriteArticle(user_id=user_id, article_slug=slug)
    db.add(entry)
    await flush_or_raise(db, conflict_message=ALREADY_FAVORITED)
    return _favorite_to_dict(entry)


async def unfavorite(db: AsyncSession, user_id: int, slug: str) -> None:
    await get_article_or_404(db, slug)
    result = await db.execute(
        delete(FavoriteArticle).where(
            FavoriteArticle.user_id == user_id, FavoriteArticle.article_slug == slug
        )
    )
    if result.rowcount == 0:
        raise NotFound(NOT_FAVORITED)


async def list_favorites_for_article(db: AsyncSession, slug: str) -> dict:
    """Return who favorited *slug*, oldest first."""
    await get_article_or_404(db, slug)
    result = await db.execute(
        select(FavoriteArticle)
        .where(FavoriteArticle.article_slug == slug)
        .order_by(FavoriteArticle.created_at, FavoriteArticle.id)
    )
    favorites = [_favorite_to_dict(f) for f in result.scalars().all()]
    return {"favorites": favorites, "count": len(favorites)}
