"""
Bookmark service: per-user saved articles.

Adding a bookmark that already exists and removing one that does not are
both errors (``Conflict`` / ``NotFound``), never silent no-ops.
"""
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from quill.database import flush_or_raise
from quill.errors import Conflict, NotFound
from quill.models import Article, Bookmark, FavoriteArticle
from quill.services.article_service import article_to_dict, get_article_or_404

ALREADY_BOOKMARKED = "Article has been previously bookmarked"
NOT_BOOKMARKED = "This article is not currently bookmarked"


async def bookmark(db: AsyncSession, user_id: int, slug: str) -> dict:
    article = await get_article_or_404(db, slug)

    existing = await db.execute(
        select(Bookmark.id).where(Bookmark.user_id == user_id, Bookmark.article_slug == slug)
    )
    if existing.first() is not None:
        raise Conflict(ALREADY_BOOKMARKED)

    entry = Bookmark(user_id=user_id, article_slug=slug)
    db.add(entry)
    await flush_or_raise(db, conflict_message=ALREADY_BOOKMARKED)
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "article_slug": entry.article_slug,
        "title": article.title,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


async def remove_bookmark(db: AsyncSession, user_id: int, slug: str) -> None:
    await get_article_or_404(db, slug)
    result = await db.execute(
        delete(Bookmark).where(Bookmark.user_id == user_id, Bookmark.article_slug == slug)
    )
    if result.rowcount == 0:
        raise NotFound(NOT_BOOKMARKED)


async def list_bookmarks(db: AsyncSession, user_id: int) -> dict:
    """
    Return the user's bookmarked articles, newest bookmark first, each
    flagged with whether the user also favorited it.
    """
    result = await db.execute(
        select(Bookmark)
        .where(Bookmark.user_id == user_id)
        .options(
            selectinload(Bookmark.article).options(
                joinedload(Article.author), selectinload(Article.tags)
            )
        )
        .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
    )
    bookmarks = result.scalars().all()

    favorites = await db.execute(
        select(FavoriteArticle.article_slug).where(FavoriteArticle.user_id == user_id)
    )
    favorited = set(favorites.scalars().all())

    articles = []
    for entry in bookmarks:
        data = article_to_dict(entry.article)
        data["favorited"] = entry.article_slug in favorited
        data["bookmarked_at"] = entry.created_at.isoformat() if entry.created_at else None
        articles.append(data)
    return {"articles": articles, "articles_count": len(articles)}
