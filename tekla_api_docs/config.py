"""
Runtime settings.

Defaults can be overridden with ``TEKLA_DOCS_*`` environment variables,
read from the process environment or a ``.env`` file found upward from the
working directory, and then by CLI options.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv, find_dotenv
from pydantic import BaseModel, Field

ENV_PREFIX = "TEKLA_DOCS_"


class Settings(BaseModel):
    """Locations, naming conventions and tuning knobs of the documentation index."""
    dataset_dir: Path = Field(Path("parsed-api"), description="Directory of persisted dataset files")
    html_dir: Path = Field(Path("extracted-docs/html"), description="Directory of raw help pages")
    root_token: str = Field("Tekla", description="First segment of every product namespace")
    root_namespace: str = Field("Tekla.Structures", description="Namespace that classifies on its own")
    modeling_namespace: str = Field("Tekla.Structures.Model")
    drawing_namespace: str = Field("Tekla.Structures.Drawing")
    fallback_enabled: bool = Field(True, description="Consult the developer site when local data is thin")
    fallback_base_url: str = Field("https://developer.tekla.com/doc/tekla-structures/2025")
    fallback_timeout: float = Field(15.0, gt=0, description="Per-request timeout in seconds")
    search_threshold: float = Field(0.4, ge=0.0, le=1.0, description="0 = exact, 1 = match anything")
    min_match_length: int = Field(2, ge=1)
    log_level: str = Field("INFO")

    class Config:
        json_schema_extra = {
            "example": {
                "dataset_dir": "parsed-api",
                "html_dir": "extracted-docs/html",
                "fallback_enabled": False,
                "log_level": "DEBUG"
            }
        }

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> "Settings":
        """
        Build settings from the environment.

        Args:
            env_file: Explicit .env path (default: search upward from cwd)
            **overrides: Values that win over the environment (None values are ignored)

        Returns:
            Settings object
        """
        load_dotenv(env_file or find_dotenv(usecwd=True))

        values = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)
