# api/routers/listings.py
from typing import Optional, List, Dict, Any
from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.engine import Connection

from api import deps
from api.deps import get_conn, get_generator, get_current_user
from api.describer import DescriptionGenerator
from api.errors import api_error
from api.models import Listing, ListingCreate, ListingUpdate
from api.repository import listings as repo

router = APIRouter(prefix="/api", tags=["listings"])

_DENIED = {
    "update": "You can only update your own listings",
    "delete": "You can only delete your own listings",
}

_MAX_ID = 2**31 - 1

def _parse_id(raw: str, not_found: str = "Listing not found") -> int:
    """Ids are positive integers; anything else cannot name a listing."""
    if not (raw.isascii() and raw.isdigit()) or int(raw) > _MAX_ID:
        raise api_error(404, not_found)
    return int(raw)

def _raise_for(outcome: str, action: str):
    if outcome == repo.NOT_FOUND:
        raise api_error(404, "Listing not found")
    raise api_error(403, _DENIED[action])

@router.post("/listings", response_model=Listing, status_code=status.HTTP_201_CREATED)
def create_listing(
    payload: ListingCreate,
    user_id: str = Depends(get_current_user),
    conn: Connection = Depends(get_conn),
    generator: DescriptionGenerator = Depends(get_generator),
):
    row = repo.create_listing(conn, payload.model_dump(), user_id, generator)
    return Listing(**row)

@router.get("/listings", response_model=List[Listing])
def list_listings(
    # paging & sorting
    limit: int = Query(9, ge=1),
    start_index: int = Query(0, ge=0, alias="startIndex"),
    sort: str = Query("createdAt"),
    order: str = Query("desc", description="asc or desc"),

    # filters: "true" constrains, anything else means either
    search_term: str = Query("", alias="searchTerm"),
    offer: Optional[str] = Query(None),
    furnished: Optional[str] = Query(None),
    parking: Optional[str] = Query(None),
    type: Optional[str] = Query(None, description="sale, rent or all"),

    conn: Connection = Depends(get_conn),
):
    """
    Thin endpoint:
      - assemble filters into a dict
      - call repository.search()
      - map raw rows -> Pydantic models
    """
    q: Dict[str, Any] = {
        "search_term": search_term,
        "offer": offer == "true",
        "furnished": furnished == "true",
        "parking": parking == "true",
        "filter_parking": deps.SEARCH_FILTER_PARKING,
        "type": type,
        "sort": sort,
        "order": order,
        "limit": limit,
        "start_index": start_index,
        "max_limit": deps.SEARCH_MAX_LIMIT,
    }

    rows = repo.search(conn, q)
    return [Listing(**row) for row in rows]

@router.get("/listings/{listing_id}", response_model=Listing)
def get_listing(listing_id: str, conn: Connection = Depends(get_conn)):
    row = repo.get_by_id(conn, _parse_id(listing_id, "Listing not found!"))
    if not row:
        raise api_error(404, "Listing not found!")
    return Listing(**row)

@router.api_route("/listings/{listing_id}", methods=["PUT", "PATCH"], response_model=Listing)
def update_listing(
    listing_id: str,
    body: Any = Body(None),
    user_id: str = Depends(get_current_user),
    conn: Connection = Depends(get_conn),
):
    # Existence and ownership are settled before the body is looked at.
    lid = _parse_id(listing_id)
    outcome = repo.check_owner(conn, lid, user_id)
    if outcome is not None:
        _raise_for(outcome, "update")

    try:
        payload = ListingUpdate.model_validate(body if body is not None else {})
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False), body=body)

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    result = repo.update_owned(conn, lid, user_id, changes)
    if not isinstance(result, dict):
        _raise_for(result, "update")
    return Listing(**result)

@router.delete("/listings/{listing_id}")
def delete_listing(
    listing_id: str,
    user_id: str = Depends(get_current_user),
    conn: Connection = Depends(get_conn),
):
    outcome = repo.delete_owned(conn, _parse_id(listing_id), user_id)
    if outcome is not None:
        _raise_for(outcome, "delete")
    return "Listing has been deleted!"
