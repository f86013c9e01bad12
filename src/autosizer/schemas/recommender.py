from pydantic import BaseModel, Field


class MachineTypeChange(BaseModel):
    instance_name: str
    current_type: str
    recommended_type: str
    target_machine_type: str = Field(
        description="Reference passed to setMachineType, "
        "e.g. zones/us-central1-a/machineTypes/e2-small"
    )
    recommendation_name: str = ""
    etag: str = ""
