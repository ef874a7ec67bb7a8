# foodstore/core/security.py
from datetime import datetime, timedelta, timezone

from fastapi.concurrency import run_in_threadpool
from jose import jwt
from passlib.context import CryptContext

from foodstore.core.config import Settings


class PasswordHasher:
    """Adaptive salted hashing; both operations run off the event loop."""

    def __init__(self, rounds: int = 10):
        self.context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    async def hash(self, password: str) -> str:
        return await run_in_threadpool(self.context.hash, password)

    async def verify(self, plain_password: str, hashed_password: str) -> bool:
        return await run_in_threadpool(self.context.verify, plain_password, hashed_password)


def create_access_token(data: dict, settings: Settings, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Settings) -> dict:
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
