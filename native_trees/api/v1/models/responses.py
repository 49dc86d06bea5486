"""
API response models using Pydantic.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class TreeSpeciesItem(BaseModel):
    """Single native tree species at a location."""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Record identifier")
    external_id: Optional[str] = Field(default=None, description="GBIF taxon key")
    common_name: str
    scientific_name: str
    image_url: Optional[str] = None
    habitat_description: str
    max_height: Optional[int] = Field(default=None, description="Maximum height in feet")
    max_age: Optional[int] = Field(default=None, description="Maximum age in years")
    city: str
    state: str


class TreeSpeciesSearchResponse(BaseModel):
    """Response model for the tree species search endpoint."""
    species: List[TreeSpeciesItem] = Field(
        description="Native tree species, strongest evidence first"
    )
    location: str = Field(
        description="Searched location as '<city>, <state>'"
    )
    count: int = Field(
        description="Number of species returned"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "species": [
                    {
                        "id": "3f0c8f8e-4d7b-4a43-9f55-5c1d7f0c2a11",
                        "external_id": "2878688",
                        "common_name": "Live Oak",
                        "scientific_name": "Quercus virginiana",
                        "image_url": None,
                        "habitat_description": "Native to the TX region...",
                        "max_height": None,
                        "max_age": None,
                        "city": "Austin",
                        "state": "TX",
                    }
                ],
                "location": "Austin, TX",
                "count": 1,
            }
        }
    )


class StateItem(BaseModel):
    """US state option."""
    code: str
    name: str


class ErrorResponse(BaseModel):
    """Error body raised through HTTPException."""
    detail: str = Field(..., description="Human-readable failure message")
