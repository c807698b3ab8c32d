from enum import Enum
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator


class ProfileVariant(str, Enum):
    DIRECT = "direct"
    NETWORK_SCOPED = "network_scoped"  # Sales Navigator lead pages


class Target(BaseModel):
    """
    One outreach recipient as supplied by the target source.

    Columns beyond the named ones are kept as extra attributes and are
    available to message templates under their column names.
    """

    url: str
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    industry: str = ""
    topic: str = ""

    class Config:
        frozen = True
        extra = "allow"
        populate_by_name = True

    @field_validator("url")
    @classmethod
    def check_url(cls, value: str) -> str:
        value = (value or "").strip()
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"not a well-formed profile URL: {value!r}")
        return value

    @field_validator("first_name", "last_name", "industry", "topic", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def variant(self) -> ProfileVariant:
        if "/sales/" in self.url.lower():
            return ProfileVariant.NETWORK_SCOPED
        return ProfileVariant.DIRECT

    def attributes(self) -> dict[str, str]:
        """
        All attributes, keyed by both source column name and field name
        (firstName and first_name), plus any extra columns as given.
        """
        data = {**self.model_dump(), **self.model_dump(by_alias=True)}
        return {k: "" if v is None else str(v) for k, v in data.items()}
