"""Pydantic schemas for habit input validation."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models import MAX_GOAL, MIN_GOAL, HabitColor


class HabitCreate(BaseModel):
    """Fields accepted when creating a habit."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(max_length=100)
    goal: int = Field(ge=MIN_GOAL, le=MAX_GOAL)
    color: HabitColor = HabitColor.LIME

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Habit name cannot be empty")
        return v


class HabitUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(default=None, max_length=100)
    goal: int | None = Field(default=None, ge=MIN_GOAL, le=MAX_GOAL)
    color: HabitColor | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Habit name cannot be empty")
        return v

    def changes(self) -> dict[str, object]:
        """Only the fields the caller actually set."""
        values = self.model_dump(exclude_none=True)
        if "color" in values:
            values["color"] = HabitColor(values["color"]).value
        return values
