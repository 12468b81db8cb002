import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from quill.config import settings
from quill.errors import Conflict, InternalError, ValidationError
from quill.middleware import install_query_counter

logger = logging.getLogger(__name__)

# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

# Register the per-request SQL query counter on the production engine.
install_query_counter(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def flush_or_raise(db: AsyncSession, conflict_message: str | None = None) -> None:
    """
    Flush pending changes, translating store failures into service errors.

    An ``IntegrityError`` becomes ``Conflict(conflict_message)`` when a
    message is given (unique constraints), otherwise ``ValidationError``
    (NOT NULL / foreign key violations).  Anything else the driver raises
    becomes ``InternalError``.  The caller's transaction is left for
    ``get_db`` to roll back.
    """
    try:
        await db.flush()
    except IntegrityError as exc:
        if conflict_message is not None:
            raise Conflict(conflict_message) from exc
        raise ValidationError() from exc
    except SQLAlchemyError as exc:
        logger.error("Store flush failed: %s", exc)
        raise InternalError() from exc
