"""Runtime settings for dpnd."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_MANIFEST_NAME = "dpnd.txt"
LEDGER_PREFIX = "current_"


class Settings(BaseModel):
    """Settings shared by the walker, executor and fetch tools.

    The ledger lives inside each manifest's output directory and is named
    after the manifest, e.g. `current_dpnd.txt`.
    """

    model_config = ConfigDict(frozen=True)

    manifest_name: str = Field(
        default=DEFAULT_MANIFEST_NAME,
        description="File name searched for in the working directory and its ancestors",
    )
    git_executable: str = Field(default="git", description="git binary used by the git tool")
    fetch_timeout: Optional[float] = Field(
        default=None,
        description="Seconds before a single fetch command is abandoned; None waits forever",
    )

    @field_validator("manifest_name")
    @classmethod
    def validate_manifest_name(cls, v: str) -> str:
        if not v or "/" in v or v in (".", ".."):
            raise ValueError(f"manifest_name must be a plain file name; got '{v}'")
        return v

    @field_validator("fetch_timeout")
    @classmethod
    def validate_fetch_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError(f"fetch_timeout must be positive; got {v}")
        return v

    @property
    def ledger_name(self) -> str:
        return LEDGER_PREFIX + self.manifest_name
