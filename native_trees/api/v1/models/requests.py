"""
API request models using Pydantic.
"""
from pydantic import BaseModel, Field, field_validator


class SearchLocationRequest(BaseModel):
    """Location to search for native trees."""
    city: str = Field(
        min_length=1,
        description="City name",
        examples=["Austin"]
    )
    state: str = Field(
        min_length=2,
        max_length=2,
        pattern=r"^[A-Za-z]{2}$",
        description="Two-letter US state code",
        examples=["TX"]
    )

    @field_validator("city")
    @classmethod
    def city_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("City is required")
        return value

    @field_validator("state")
    @classmethod
    def upper_state(cls, value: str) -> str:
        return value.upper()
