from pydantic import BaseModel, Field, ValidationError

from models import MeasurementUnit


class SettingsSchema(BaseModel):
    units: MeasurementUnit = MeasurementUnit.METRIC
    first_weekday: int = Field(default=0, ge=0, le=6)
    reachability_url: str = "https://zengym.app/gate"
    reachability_timeout: float = Field(default=0.0, ge=0)
    log_level: str = "INFO"
    api_key: str = ""


def default_settings() -> dict:
    return SettingsSchema().model_dump(mode="json")


def validate_settings(data: dict) -> None:
    try:
        SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
