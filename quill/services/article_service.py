"""
Article service: business logic for the Article aggregate.

Design notes
------------
- The slug is derived from the title once, at creation, and never changes
  afterwards: bookmarks and favorites reference articles by slug.
- Only the author may update, delete or retag an article; the ownership
  check always runs after the existence check (404 before 403).
- Detail reads go through the cache-aside pattern (Redis, then DB).  Only
  the user-independent part (record + reaction counts) is cached; the
  caller's bookmark / favorite flags are looked up on every request.
- Eager loading via ``joinedload`` (author) and ``selectinload`` (tags) is
  used throughout; every relationship is ``lazy="noload"``.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import math
import re
import secrets

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from quill.cache import cache
from quill.config import settings
from quill.database import flush_or_raise
from quill.errors import Forbidden, NotFound
from quill.models import Article, Bookmark, FavoriteArticle, Reaction, ReactionType, Tag
from quill.schemas import ArticleCreate, ArticleUpdate

ARTICLE_NOT_FOUND = "Article Not found!"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SPACE_RE = re.compile(r"[\s_]+")
_SLUG_DASH_RE = re.compile(r"-+")
_WORD_RE = re.compile(r"\S+")


def slugify(text: str) -> str:
    """Return a URL-safe, lowercase slug derived from *text*."""
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    text = _SLUG_SPACE_RE.sub("-", text)
    return _SLUG_DASH_RE.sub("-", text).strip("-")


def compute_read_time(body: str | None, image: str | None = None) -> int:
    """
    Minutes needed to read an article: body words at ``WORDS_PER_MINUTE``
    plus ``IMAGE_READ_SECONDS`` when an image is attached, rounded up,
    never less than one minute.
    """
    words = len(_WORD_RE.findall(body or ""))
    seconds = words * 60 / settings.WORDS_PER_MINUTE
    if image:
        seconds += settings.IMAGE_READ_SECONDS
    return max(1, math.ceil(seconds / 60))


def normalize_tags(tags: list[str]) -> list[str]:
    """Strip, lowercase and de-duplicate tag names, keeping first-seen order."""
    seen: dict[str, None] = {}
    for raw in tags:
        name = (raw or "").strip().lower()
        if name:
            seen.setdefault(name, None)
    return list(seen)


async def _unique_slug(db: AsyncSession, title: str) -> str:
    base = slugify(title) or "article"
    slug = base
    while (await db.execute(select(Article.id).where(Article.slug == slug))).first() is not None:
        slug = f"{base}-{secrets.token_hex(3)}"
    return slug


async def _resolve_tags(db: AsyncSession, tag_names: list[str]) -> list[Tag]:
    """
    Return Tag ORM instances for each name in *tag_names*, creating any
    that do not yet exist within the caller's transaction.
    """
    if not tag_names:
        return []
    result = await db.execute(select(Tag).where(Tag.name.in_(tag_names)))
    existing = {t.name: t for t in result.scalars().all()}
    tags: list[Tag] = []
    for name in tag_names:
        tag = existing.get(name)
        if tag is None:
            tag = Tag(name=name)
            db.add(tag)
        tags.append(tag)
    await flush_or_raise(db, conflict_message="Tag was created concurrently, retry the request")
    return tags


async def find_article(db: AsyncSession, slug: str, *, hydrate: bool = False) -> Article | None:
    q = select(Article).where(Article.slug == slug)
    if hydrate:
        q = q.options(joinedload(Article.author), selectinload(Article.tags)).execution_options(
            populate_existing=True
        )
    result = await db.execute(q)
    return result.unique().scalar_one_or_none()


async def get_article_or_404(db: AsyncSession, slug: str, *, hydrate: bool = False) -> Article:
    article = await find_article(db, slug, hydrate=hydrate)
    if article is None:
        raise NotFound(ARTICLE_NOT_FOUND)
    return article


async def _get_owned_article(db: AsyncSession, slug: str, author_id: int, action: str) -> Article:
    article = await get_article_or_404(db, slug, hydrate=True)
    if article.author_id != author_id:
        raise Forbidden(f"You cannot {action} an article added by another user")
    return article


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _serialize_author(author) -> dict | None:
    if author is None:
        return None
    return {
        "id": author.id,
        "first_name": author.first_name,
        "last_name": author.last_name,
    }


def article_to_dict(article: Article) -> dict:
    """Serialise an Article ORM instance (author and tags must be loaded)."""
    return {
        "id": article.id,
        "slug": article.slug,
        "title": article.title,
        "description": article.description,
        "body": article.body,
        "image": article.image,
        "read_time": article.read_time,
        "author_id": article.author_id,
        "author": _serialize_author(article.author),
        "tag_list": article.tag_list,
        "created_at": article.created_at.isoformat() if article.created_at else None,
        "updated_at": article.updated_at.isoformat() if article.updated_at else None,
    }


async def _reaction_counts(db: AsyncSession, article_id: int) -> dict:
    result = await db.execute(
        select(Reaction.reaction, func.count())
        .where(Reaction.article_id == article_id)
        .group_by(Reaction.reaction)
    )
    counts = {reaction: total for reaction, total in result.all()}
    return {
        "likes": counts.get(ReactionType.LIKE, 0),
        "dislikes": counts.get(ReactionType.DISLIKE, 0),
    }


async def _bookmarked_slugs(db: AsyncSession, user_id: int) -> set[str]:
    result = await db.execute(select(Bookmark.article_slug).where(Bookmark.user_id == user_id))
    return set(result.scalars().all())


async def _favorited_slugs(db: AsyncSession, user_id: int) -> set[str]:
    result = await db.execute(
        select(FavoriteArticle.article_slug).where(FavoriteArticle.user_id == user_id)
    )
    return set(result.scalars().all())


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_article(db: AsyncSession, author_id: int, data: ArticleCreate) -> dict:
    """Create an article owned by *author_id* and return its full dict."""
    article = Article(
        slug=await _unique_slug(db, data.title),
        title=data.title,
        description=data.description,
        body=data.body,
        image=data.image or None,
        read_time=compute_read_time(data.body, data.image),
        author_id=author_id,
    )
    db.add(article)
    await flush_or_raise(db, conflict_message="An article with this slug already exists")

    article = await get_article_or_404(db, article.slug, hydrate=True)
    return article_to_dict(article)


async def update_article(db: AsyncSession, slug: str, author_id: int, data: ArticleUpdate) -> dict:
    """
    Merge the truthy fields of *data* over the article and recompute its
    read time.  Empty or missing fields keep their current value.
    """
    article = await _get_owned_article(db, slug, author_id, "modify")

    for field, value in data.model_dump().items():
        if value:
            setattr(article, field, value)
    article.read_time = compute_read_time(article.body, article.image)

    await flush_or_raise(db)
    await cache.invalidate_article(slug)
    return article_to_dict(article)


async def delete_article(db: AsyncSession, slug: str, author_id: int) -> None:
    article = await _get_owned_article(db, slug, author_id, "delete")
    await db.delete(article)
    await flush_or_raise(db)
    await cache.invalidate_article(slug)


async def set_tags(db: AsyncSession, slug: str, author_id: int, tags: list[str]) -> list[str]:
    """Replace the article's tag list wholesale and return the new list."""
    article = await _get_owned_article(db, slug, author_id, "modify")
    article.tags = await _resolve_tags(db, normalize_tags(tags))
    await flush_or_raise(db)
    await cache.invalidate_article(slug)
    return article.tag_list


async def list_articles(db: AsyncSession, user_id: int) -> list[dict]:
    """
    Return every article, newest first, flagged with whether *user_id*
    bookmarked / favorited it.

    An empty store raises ``NotFound`` rather than returning ``[]``;
    clients rely on the 404.
    """
    result = await db.execute(
        select(Article)
        .options(joinedload(Article.author), selectinload(Article.tags))
        .order_by(Article.created_at.desc(), Article.id.desc())
    )
    articles = result.unique().scalars().all()
    if not articles:
        raise NotFound(ARTICLE_NOT_FOUND)

    bookmarked = await _bookmarked_slugs(db, user_id)
    favorited = await _favorited_slugs(db, user_id)
    items = []
    for article in articles:
        data = article_to_dict(article)
        data["bookmarked"] = article.slug in bookmarked
        data["favorited"] = article.slug in favorited
        items.append(data)
    return items


async def get_article(db: AsyncSession, slug: str, user_id: int) -> dict:
    """Return one article with reaction counts and the caller's flags."""
    data = await cache.get_article(slug)
    if data is None:
        article = await get_article_or_404(db, slug, hydrate=True)
        data = article_to_dict(article)
        data["reactions"] = await _reaction_counts(db, article.id)
        await cache.set_article(slug, data)

    data["bookmarked"] = slug in await _bookmarked_slugs(db, user_id)
    data["favorited"] = slug in await _favorited_slugs(db, user_id)
    return data
