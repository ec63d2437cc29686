"""Account registration and login."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from passlib.context import CryptContext
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stocksense.auth.jwt import create_access_token
from stocksense.database import get_db
from stocksense.models.user_account import UserAccount
from stocksense.simulation import portfolio_engine

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class Credentials(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    username: str


def _token_for(user: UserAccount) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id),
        user_id=user.id,
        username=user.username,
    )


async def _find_user(db: AsyncSession, username: str) -> UserAccount | None:
    return (
        await db.execute(select(UserAccount).where(UserAccount.username == username))
    ).scalar_one_or_none()


@router.post("/register", response_model=TokenResponse)
async def register(req: Credentials, db: AsyncSession = Depends(get_db)):
    """Create an account and open its portfolio with the starting cash."""
    if await _find_user(db, req.username) is not None:
        raise HTTPException(status_code=400, detail="Username already taken")
    user = UserAccount(username=req.username, password_hash=pwd_context.hash(req.password))
    db.add(user)
    await db.flush()
    await portfolio_engine.open_portfolio(db, user.id)
    await db.commit()
    log.info("Registered user %s (%d)", user.username, user.id)
    return _token_for(user)


@router.post("/login", response_model=TokenResponse)
async def login(req: Credentials, db: AsyncSession = Depends(get_db)):
    user = await _find_user(db, req.username)
    if user is None or not pwd_context.verify(req.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _token_for(user)
