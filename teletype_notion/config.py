"""
Settings for a conversion run.

Settings are read from the environment once, by the run scripts, and then
passed explicitly to every component that needs them. Run scripts call
python-dotenv's load_dotenv() first, so a local .env file works too:

    NOTION_SECRET=secret_...
    NOTION_PAGE_ID=0123456789abcdef0123456789abcdef
    DRY_RUN=1
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from .chunker import BATCH_LIMIT
from .exceptions import ConfigurationError
from .fetcher import DEFAULT_DOCS_URL
from .preprocessor import DEFAULT_CONTENT_SELECTOR

DEFAULT_NOTION_VERSION = "2022-06-28"


def _env_flag(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() not in {"", "0", "false", "off", "no"}


class Settings(BaseModel):
    """Everything a run needs to know about its environment."""
    notion_secret: str = ""
    notion_page_id: str = ""             # Parent page of the version pages
    notion_version: str = DEFAULT_NOTION_VERSION
    dry: bool = False                    # No document API calls at all
    docs_url: str = DEFAULT_DOCS_URL
    downloads_dir: Path = Field(default_factory=lambda: Path.cwd() / "downloads")
    content_selector: str = DEFAULT_CONTENT_SELECTOR
    batch_limit: int = Field(default=BATCH_LIMIT, ge=1)
    min_interval_ms: int = Field(default=200, ge=0)  # Between two append requests

    def validate_for_publish(self) -> None:
        """
        Check that publishing is possible.

        Raises:
            ConfigurationError: outside dry mode, when the secret or the
                                parent page id is missing
        """
        if self.dry:
            return
        missing = [
            name for name, value in (
                ("NOTION_SECRET", self.notion_secret),
                ("NOTION_PAGE_ID", self.notion_page_id),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing settings for publishing: {', '.join(missing)}",
                details={"missing": missing}
            )


def load_settings(**overrides) -> Settings:
    """
    Build Settings from environment variables.

    Keyword overrides (e.g. from command line flags) win over the environment;
    None values are ignored.
    """
    values = {
        "notion_secret": os.getenv("NOTION_SECRET", ""),
        "notion_page_id": os.getenv("NOTION_PAGE_ID", ""),
        "dry": _env_flag(os.getenv("DRY_RUN")),
    }
    optional_env = {
        "notion_version": "NOTION_VERSION",
        "docs_url": "DOCS_URL",
        "downloads_dir": "DOWNLOADS_DIR",
        "content_selector": "CONTENT_SELECTOR",
    }
    for field, env_name in optional_env.items():
        value = os.getenv(env_name)
        if value:
            values[field] = value

    values.update({key: value for key, value in overrides.items() if value is not None})
    return Settings(**values)
