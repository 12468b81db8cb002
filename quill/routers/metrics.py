from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from quill.cache import cache
from quill.config import settings
from quill.database import get_db
from quill.models import Article, Bookmark, FavoriteArticle, Reaction, User
from quill.schemas import MetricsResponse

router = APIRouter(prefix=f"{settings.API_PREFIX}/metrics", tags=["metrics"])


async def _count(db: AsyncSession, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()

@router.get("", response_model=MetricsResponse)
async def get_metrics(db: AsyncSession = Depends(get_db)):
    return MetricsResponse(
        total_users=await _count(db, User),
        total_articles=await _count(db, Article),
        total_reactions=await _count(db, Reaction),
        total_bookmarks=await _count(db, Bookmark),
        total_favorites=await _count(db, FavoriteArticle),
        cache_info=cache.stats,
    )
