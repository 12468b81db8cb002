from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from quill.config import settings
from quill.database import get_db
from quill.schemas import SigninRequest, SignupRequest
from quill.services import user_service

router = APIRouter(prefix=f"{settings.API_PREFIX}/users", tags=["users"])

@router.post("/signup", status_code=201)
async def signup(data: SignupRequest, db: AsyncSession = Depends(get_db)):
    token = await user_service.signup(db, data)
    return {"message": "Successfully created your account", "token": token}

@router.post("/signin")
async def signin(data: SigninRequest, db: AsyncSession = Depends(get_db)):
    token = await user_service.signin(db, data)
    return {"message": "Successfully signed in", "token": token}

@router.get("/{user_id}")
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return {"message": "User profile retrieved", "data": await user_service.get_user(db, user_id)}
