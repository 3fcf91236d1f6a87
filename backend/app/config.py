import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .errors import ConfigurationError


DEFAULT_AWS_REGION = "us-east-1"
DEFAULT_STAGE = "dev"


@dataclass(frozen=True)
class Settings:
    ratings_table_name: str
    youtube_api_key: str
    aws_region: str = DEFAULT_AWS_REGION
    stage: str = DEFAULT_STAGE

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            ratings_table_name=(os.getenv("RATINGS_TABLE_NAME") or "").strip(),
            youtube_api_key=(os.getenv("YOUTUBE_API_KEY") or "").strip(),
            aws_region=(os.getenv("AWS_REGION") or DEFAULT_AWS_REGION).strip(),
            stage=(os.getenv("STAGE") or DEFAULT_STAGE).strip(),
        )

    def require_table_name(self) -> str:
        if not self.ratings_table_name:
            raise ConfigurationError(
                "Missing table name configuration",
                detail="RATINGS_TABLE_NAME is not set",
            )
        return self.ratings_table_name

    def require_youtube_api_key(self) -> str:
        if not self.youtube_api_key:
            raise ConfigurationError(
                "Server configuration error",
                detail="YOUTUBE_API_KEY is not set",
            )
        return self.youtube_api_key
