from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from quill.config import settings
from quill.database import get_db
from quill.dependencies import get_current_user_id
from quill.schemas import ArticleCreate, ArticleUpdate, ReactionCreate, TagsUpdate
from quill.services import article_service, bookmark_service, favorite_service, reaction_service

router = APIRouter(prefix=f"{settings.API_PREFIX}/articles", tags=["articles"])

# --- Article CRUD ---

@router.post("", status_code=201)
async def create_article(
    data: ArticleCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.create_article(db, user_id, data)
    return {"message": "You have created an article successfully", "article": article}

@router.get("")
async def list_articles(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    articles = await article_service.list_articles(db, user_id)
    return {"message": "Articles gotten successfully!", "articles": articles}

@router.get("/{slug}")
async def get_article(
    slug: str,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.get_article(db, slug, user_id)
    return {"message": "Article gotten successfully!", "article": article}

@router.put("/{slug}")
async def update_article(
    slug: str,
    data: ArticleUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.update_article(db, slug, user_id, data)
    return {"message": "Article successfully modified", "article": article}

@router.delete("/{slug}")
async def delete_article(
    slug: str,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await article_service.delete_article(db, slug, user_id)
    return {"message": "Article successfully deleted"}

# --- Tags ---

@router.put("/{slug}/tags")
async def set_tags(
    slug: str,
    data: TagsUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    tags = await article_service.set_tags(db, slug, user_id, data.tags)
    return {"message": "Updated article tags successfully", "data": {"tags": tags}}

# --- Reactions ---

@router.post("/{slug}/reactions")
async def react(
    slug: str,
    data: ReactionCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    transition = await reaction_service.react(db, user_id, slug, data.reaction)
    return JSONResponse(
        status_code=transition.status_code,
        content={
            "message": reaction_service.MESSAGES[transition.outcome],
            "data": {
                "outcome": transition.outcome.value,
                "reaction": transition.state.value if transition.state else None,
            },
        },
    )

# --- Bookmarks ---

@router.post("/{slug}/bookmark", status_code=201)
async def bookmark_article(
    slug: str,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    entry = await bookmark_service.bookmark(db, user_id, slug)
    return {"message": "Article bookmarked successfully", "data": entry}

@router.delete("/{slug}/bookmark")
async def remove_bookmark(
    slug: str,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await bookmark_service.remove_bookmark(db, user_id, slug)
    return {"message": "Bookmark removed successfully"}

# --- Favorites ---

@router.post("/{slug}/favorite", status_code=201)
async def favorite_article(
    slug: str,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    entry = await favorite_service.favorite(db, user_id, slug)
    return {"message": "Article favorited successfully", "data": entry}

@router.delete("/{slug}/favorite")
async def unfavorite_article(
    slug: str,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await favorite_service.unfavorite(db, user_id, slug)
    return {"message": "Article removed from favorites"}

@router.get("/{slug}/favorites")
async def list_favorites(
    slug: str,
    _: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    data = await favorite_service.list_favorites_for_article(db, slug)
    return {"message": "Successfully retrieved users who favorited this article", "data": data}
