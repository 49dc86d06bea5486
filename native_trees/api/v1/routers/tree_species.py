"""
API router for tree species endpoints.
"""
import logging
from typing import List

from fastapi import APIRouter, HTTPException, Request

from native_trees.api.dependencies import TreeSearchServiceDep
from native_trees.api.rate_limit import SEARCH_RATE_LIMIT, limiter
from native_trees.api.v1.models.requests import SearchLocationRequest
from native_trees.api.v1.models.responses import (
    ErrorResponse,
    StateItem,
    TreeSpeciesItem,
    TreeSpeciesSearchResponse,
)
from native_trees.infrastructure.external_api_client import ExternalAPIError
from native_trees.utils.us_states import US_STATES

logger = logging.getLogger(__name__)

UPSTREAM_FAILURE_MESSAGE = "Failed to fetch tree species data. Please try again later."

router = APIRouter(tags=["tree-species"])


@router.post(
    "/tree-species/search",
    response_model=TreeSpeciesSearchResponse,
    summary="Search native tree species",
    description="""
    Find tree species observed near a US city that are likely native there.

    This endpoint:
    1. Returns cached results for the location when available
    2. Geocodes the city and fetches plant occurrences from GBIF
    3. Keeps likely trees and votes on native status per taxon
    4. Ranks taxa by occurrence count and enriches the top ones
    5. Stores and returns the resulting species

    An empty species list is a normal outcome, not an error.
    """,
    responses={
        200: {"description": "Search completed (possibly with zero species)"},
        422: {"description": "Invalid city or state"},
        429: {"description": "Rate limit exceeded"},
        503: {"model": ErrorResponse, "description": "An upstream data source is unavailable; retry later"},
    },
)
@limiter.limit(SEARCH_RATE_LIMIT)
async def search_tree_species(
    request: Request,
    payload: SearchLocationRequest,
    search_service: TreeSearchServiceDep,
) -> TreeSpeciesSearchResponse:
    """
    Search native tree species for a location.

    Args:
        request: Incoming request (used by the rate limiter)
        payload: City and state to search
        search_service: Tree search service (injected dependency)

    Returns:
        TreeSpeciesSearchResponse with the species found

    Raises:
        HTTPException: 503 if an upstream data source is unavailable
    """
    try:
        # Delegate to service layer (no business logic here)
        result = await search_service.search_native_trees(payload.city, payload.state)
    except ExternalAPIError as e:
        logger.error(f"Tree species search failed for {payload.city}, {payload.state}: {e}")
        raise HTTPException(status_code=503, detail=UPSTREAM_FAILURE_MESSAGE)

    return TreeSpeciesSearchResponse(
        species=[TreeSpeciesItem.model_validate(s, from_attributes=True) for s in result.species],
        location=result.location,
        count=result.count,
    )


@router.get(
    "/states",
    response_model=List[StateItem],
    summary="List US states",
)
async def list_states() -> List[StateItem]:
    """Two-letter codes and names of the 50 US states."""
    return [StateItem(code=code, name=name) for code, name in US_STATES.items()]
