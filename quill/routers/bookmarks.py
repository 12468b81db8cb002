from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from quill.config import settings
from quill.database import get_db
from quill.dependencies import get_current_user_id
from quill.services import bookmark_service

router = APIRouter(prefix=f"{settings.API_PREFIX}/bookmarks", tags=["bookmarks"])

@router.get("")
async def list_bookmarks(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    data = await bookmark_service.list_bookmarks(db, user_id)
    return {"message": "Retrieved Bookmarks", "data": data}
