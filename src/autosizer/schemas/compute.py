from pydantic import BaseModel


class InstanceDescriptor(BaseModel):
    """An instance eligible for auto-sizing; only its name is correlated."""

    name: str
