from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from quill.models import ReactionType

# bcrypt hashes at most 72 bytes and refuses anything longer.
BCRYPT_MAX_BYTES = 72


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"password must be at most {BCRYPT_MAX_BYTES} bytes")
    return value


# --- Auth ---

class SignupRequest(BaseModel):
    # Every string value is trimmed before validation, password included.
    model_config = ConfigDict(str_strip_whitespace=True)

    firstname: str | None = Field(None, max_length=100)
    lastname: str | None = Field(None, max_length=100)
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=8, max_length=BCRYPT_MAX_BYTES)

    _password_bytes = field_validator("password")(_check_password_bytes)


class SigninRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=BCRYPT_MAX_BYTES)

    _password_bytes = field_validator("password")(_check_password_bytes)


class SocialTokenRequest(BaseModel):
    access_token: str = Field(min_length=1)


# --- Article ---

class ArticleCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=300)
    description: str = Field(min_length=1, max_length=500)
    body: str = Field(min_length=1)
    image: str | None = Field(None, max_length=1024)


class ArticleUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(None, max_length=300)
    description: str | None = Field(None, max_length=500)
    body: str | None = None
    image: str | None = Field(None, max_length=1024)


class TagsUpdate(BaseModel):
    tags: list[Annotated[str, Field(max_length=100)]] = Field(max_length=20)


class ReactionCreate(BaseModel):
    reaction: ReactionType


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_users: int
    total_articles: int
    total_reactions: int
    total_bookmarks: int
    total_favorites: int
    cache_info: dict = {}
