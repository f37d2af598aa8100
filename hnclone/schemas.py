from pydantic import BaseModel, Field, field_validator


USERNAME_PATTERN = r"^[A-Za-z0-9_-]{2,15}$"


# --- User ---

class UserCreate(BaseModel):
    id: str = Field(pattern=USERNAME_PATTERN)
    password: str = Field(min_length=8, max_length=72)
    email: str | None = Field(None, max_length=255)
    about: str | None = None
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)


class LoginRequest(BaseModel):
    id: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


# --- NewsItem ---

class NewsItemCreate(BaseModel):
    title: str = Field(min_length=1, max_length=80)
    url: str | None = Field(None, max_length=2048)
    text: str | None = None
    submitter_id: str

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value

    @field_validator("url", "text")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @field_validator("url")
    @classmethod
    def _check_scheme(cls, value: str | None) -> str | None:
        if value is not None and not value.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return value


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_news_items: int
    total_comments: int
    total_users: int
    total_upvotes: int
    avg_comments_per_news_item: float
    cache_info: dict = {}
