"""
Table API endpoints: equality-filtered queries, fetch by id, insert and delete.
"""

from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Body, Depends, Query, Request, Response, status
from silver_estates.models.user import User
from silver_estates.services.listing import ListingService
from silver_estates.utils.dependencies import get_current_user, get_listing_service, get_optional_user


router = APIRouter(prefix="/tables", tags=["Tables"])

# Query parameters that are not column filters
RESERVED_PARAMS = ("order", "limit")


@router.get(
    "/{table}",
    status_code=status.HTTP_200_OK,
    summary="Query a table",
    description="Every query parameter other than `order` and `limit` is an equality filter on a column. "
                "Profiles are returned only to their owner."
)
async def query_table(
    table: str,
    request: Request,
    order: Optional[str] = Query(None, description="Column, optionally suffixed with .desc or .asc"),
    limit: Optional[int] = Query(None, description="Maximum number of rows"),
    current_user: Optional[User] = Depends(get_optional_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> List[Dict[str, Any]]:
    filters = {
        key: value
        for key, value in request.query_params.items()
        if key not in RESERVED_PARAMS
    }
    return await listing_service.query(
        table, filters=filters, order=order, limit=limit, current_user=current_user
    )


@router.get(
    "/{table}/{row_id}",
    status_code=status.HTTP_200_OK,
    summary="Fetch a row by id"
)
async def get_row(
    table: str,
    row_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> Dict[str, Any]:
    return await listing_service.get(table, row_id, current_user)


@router.post(
    "/{table}",
    status_code=status.HTTP_201_CREATED,
    summary="Insert a listing",
    description="Insert a row owned by the signed-in user. Only listing tables accept inserts."
)
async def insert_row(
    table: str,
    payload: Dict[str, Any] = Body(...),
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> Dict[str, Any]:
    return await listing_service.insert(table, payload, current_user)


@router.delete(
    "/{table}/{row_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a listing",
    description="Only the owner of a listing may delete it"
)
async def delete_row(
    table: str,
    row_id: str,
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> Response:
    await listing_service.delete(table, row_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
