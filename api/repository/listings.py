import logging
import re
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from sqlalchemy import and_, or_, asc, desc, delete, insert, update, select
from sqlalchemy.engine import Connection

from api.describer import DescriptionGenerator
from api.sql import listings, listing_select, LISTING_TYPES, MUTABLE_FIELDS

LOG = logging.getLogger("repo")

# Outcome of a conditional update/delete that touched no row
NOT_FOUND = "not_found"
FORBIDDEN = "forbidden"

_ALLOWED_SORT = {
    "createdAt":  listings.c.created_at,
    "created_at": listings.c.created_at,
    "updatedAt":  listings.c.updated_at,
    "updated_at": listings.c.updated_at,
    "name":       listings.c.name,
    "area":       listings.c.area,
    "bedrooms":   listings.c.bedrooms,
}

_WORD_RE = re.compile(r"\w+", re.UNICODE)

def tokenize(term: Optional[str]) -> List[str]:
    """Lowercase and split a free-text search term into word tokens."""
    return _WORD_RE.findall((term or "").lower())

def _escape_like(token: str) -> str:
    return token.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

def _now() -> datetime:
    return datetime.now(timezone.utc)

def _row(row) -> Dict[str, Any]:
    return dict(row) if row else {}

def owner_of(conn: Connection, listing_id: int) -> Optional[str]:
    """user_ref of the listing, or None if it does not exist."""
    return conn.execute(select(listings.c.user_ref).where(listings.c.id == listing_id)).scalar_one_or_none()

def check_owner(conn: Connection, listing_id: int, user_ref: str) -> Optional[str]:
    """None when `user_ref` owns the listing, NOT_FOUND / FORBIDDEN otherwise."""
    owner = owner_of(conn, listing_id)
    if owner is None:
        return NOT_FOUND
    return None if owner == user_ref else FORBIDDEN

def _apply_filters(stmt, q: Dict[str, Any]):
    """Attach WHEREs + ORDER BY to a Core statement built by listing_select()."""
    conds = []

    # any token in name or description
    tokens = tokenize(q.get("search_term"))
    if tokens:
        patterns = [f"%{_escape_like(t)}%" for t in tokens]
        conds.append(or_(
            *[listings.c.name.ilike(p, escape="\\") for p in patterns],
            *[listings.c.description.ilike(p, escape="\\") for p in patterns],
        ))

    # tri-state flags: True constrains, None means either
    flags = ["offer", "furnished"]
    if q.get("filter_parking"):
        flags.append("parking")
    for flag in flags:
        if q.get(flag) is True:
            conds.append(getattr(listings.c, flag).is_(True))

    listing_type = q.get("type")
    if listing_type in (None, "all"):
        conds.append(listings.c.type.in_(LISTING_TYPES))
    else:
        conds.append(listings.c.type == listing_type)

    if conds:
        stmt = stmt.where(and_(*conds))

    # Sorting (whitelisted); id keeps equal timestamps in a stable order
    col = _ALLOWED_SORT.get(q.get("sort") or "createdAt", listings.c.created_at)
    direction = asc if (q.get("order") or "desc").lower() == "asc" else desc
    return stmt.order_by(direction(col), direction(listings.c.id))

def search(conn: Connection, q: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Returns the window of listings matching `q`.

    Recognised keys: search_term, offer, furnished, parking, filter_parking,
    type, sort, order, limit, start_index, max_limit.
    """
    limit = max(int(q.get("limit") or 9), 1)
    if q.get("max_limit"):
        limit = min(limit, int(q["max_limit"]))
    offset = max(int(q.get("start_index") or 0), 0)

    stmt = _apply_filters(listing_select(), q)
    LOG.debug("search q=%s limit=%s offset=%s", q, limit, offset)

    rows = conn.execute(stmt.limit(limit).offset(offset)).mappings().all()
    return [dict(r) for r in rows]

def get_by_id(conn: Connection, listing_id: int) -> Dict[str, Any]:
    """
    Returns one listing as a dict, or {} if not found.
    """
    row = conn.execute(listing_select().where(listings.c.id == listing_id)).mappings().first()
    return _row(row)

def insert_listing(conn: Connection, data: Dict[str, Any], user_ref: str) -> Dict[str, Any]:
    now = _now()
    values = {k: data[k] for k in MUTABLE_FIELDS if data.get(k) is not None}
    values.update(user_ref=user_ref, created_at=now, updated_at=now)

    result = conn.execute(insert(listings).values(**values))
    listing_id = result.inserted_primary_key[0]
    conn.commit()
    LOG.info("listing %s created by %s", listing_id, user_ref)
    return get_by_id(conn, listing_id)

def create_listing(
    conn: Connection,
    data: Dict[str, Any],
    user_ref: str,
    generator: DescriptionGenerator,
) -> Dict[str, Any]:
    """
    Persists a new listing owned by `user_ref`. A missing or blank description
    is generated first; if generation fails nothing is written.
    """
    data = dict(data)
    if not (data.get("description") or "").strip():
        data["description"] = generator.describe(
            data["name"], data["bedrooms"], data.get("features") or [], data["type"],
        )
    return insert_listing(conn, data, user_ref)

def update_owned(conn: Connection, listing_id: int, user_ref: str, changes: Dict[str, Any]):
    """
    Applies the allow-listed `changes` in one statement guarded by ownership.
    Returns the updated row, or NOT_FOUND / FORBIDDEN when nothing matched.
    """
    values = {k: v for k, v in changes.items() if k in MUTABLE_FIELDS}
    values["updated_at"] = _now()

    stmt = (
        update(listings)
        .where(listings.c.id == listing_id, listings.c.user_ref == user_ref)
        .values(**values)
    )
    if conn.execute(stmt).rowcount == 0:
        conn.rollback()
        return check_owner(conn, listing_id, user_ref) or FORBIDDEN
    conn.commit()
    LOG.info("listing %s updated by %s (%s)", listing_id, user_ref, ", ".join(sorted(values)))
    return get_by_id(conn, listing_id)

def delete_owned(conn: Connection, listing_id: int, user_ref: str) -> Optional[str]:
    """
    Deletes the listing only if `user_ref` owns it.
    Returns None on success, NOT_FOUND / FORBIDDEN otherwise.
    """
    stmt = delete(listings).where(listings.c.id == listing_id, listings.c.user_ref == user_ref)
    if conn.execute(stmt).rowcount == 0:
        conn.rollback()
        return check_owner(conn, listing_id, user_ref) or FORBIDDEN
    conn.commit()
    LOG.info("listing %s deleted by %s", listing_id, user_ref)
    return None
