import re

from pydantic import BaseModel, Field, field_validator

# e.g. us-central1-a, europe-west4-b, northamerica-northeast1-c
ZONE_PATTERN = re.compile(r"^[a-z]+(?:-[a-z]+)*\d+-[a-z]$")


class Payload(BaseModel):
    zone: str = Field(min_length=1, description="e.g., us-central1-a")
    label_key: str = Field(min_length=1)
    label_value: str = Field(min_length=1)

    @field_validator("zone")
    @classmethod
    def _valid_zone(cls, v: str) -> str:
        if not ZONE_PATTERN.fullmatch(v):
            raise ValueError(f"'{v}' is not a valid zone")
        return v

    @field_validator("label_key")
    @classmethod
    def _valid_key(cls, v: str) -> str:
        if "=" in v:
            raise ValueError("label key must not contain '='")
        return v

    @property
    def label(self) -> str:
        return f"{self.label_key}={self.label_value}"

    @property
    def instance_filter(self) -> str:
        """Server-side filter selecting instances that carry the label."""
        return f"labels.{self.label}"
