from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field("sqlite:///chirp.db")
    api_title: str = Field("Chirp API")
    default_page_limit: int = Field(50)
    max_page_limit: int = Field(500)
    max_tweet_length: int = Field(280)
    password_hash_iterations: int = Field(260_000)
    # Require "#tag" to end at a non-word character or end of text.
    hashtag_trailing_boundary: bool = Field(True)


settings = Settings()
