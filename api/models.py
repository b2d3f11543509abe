import re
from typing import Any, Optional, List, Literal, Union
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

ListingType = Literal["sale", "rent"]

_NUMERIC_JUNK_RE = re.compile(r"[^0-9\.,]+")

def parse_area_like(x: Any) -> Optional[float]:
    """Number from an area value such as 85, "85,5" or "900 sqft" (converted to m2)."""
    if x is None or (isinstance(x, float) and x != x):
        return None
    if isinstance(x, (int, float)) and not isinstance(x, bool):
        return float(x)
    raw = str(x).strip()
    if raw == "":
        return None
    s_low = raw.lower().replace(" ", "")
    is_sqft = any(token in s_low for token in ("sqft", "sq.ft", "ft2", "ft^2"))
    num_str = _NUMERIC_JUNK_RE.sub("", raw)
    if num_str == "":
        return None
    if "," in num_str and "." in num_str:
        num_str = num_str.replace(",", "")
    else:
        num_str = num_str.replace(",", ".")
    try:
        val = float(num_str)
    except ValueError:
        return None
    if is_sqft:
        return round(val * 0.092903, 6)
    return val

def _area_value(v: Any) -> Any:
    if isinstance(v, str):
        parsed = parse_area_like(v)
        if parsed is None:
            raise ValueError(f"not an area: {v!r}")
        return parsed
    return v

class Listing(BaseModel):
    id: int = Field(..., description="Store-assigned identifier")
    name: str
    description: Optional[str] = None
    area: Optional[float] = None
    bedrooms: Optional[int] = None
    features: List[str] = Field(default_factory=list)
    type: ListingType
    offer: bool = False
    furnished: bool = False
    parking: bool = False
    user_ref: str = Field(..., description="Id of the user who created the listing")
    created_at: datetime
    updated_at: datetime

class ListingCreate(BaseModel):
    # Unknown keys (id, user_ref, timestamps) are dropped by pydantic.
    name: str
    area: Union[float, str] = Field(..., description="Number, or text such as \"120 sqft\"")
    bedrooms: int = Field(..., ge=0)
    features: List[str]
    type: ListingType
    description: Optional[str] = Field(None, description="Generated when missing or blank")
    offer: bool = False
    furnished: bool = False
    parking: bool = False

    @field_validator("area", mode="before")
    @classmethod
    def parse_area(cls, v):
        return _area_value(v)

class ListingUpdate(BaseModel):
    name: Optional[str] = None
    area: Optional[Union[float, str]] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    features: Optional[List[str]] = None
    type: Optional[ListingType] = None
    description: Optional[str] = None
    offer: Optional[bool] = None
    furnished: Optional[bool] = None
    parking: Optional[bool] = None

    @field_validator("area", mode="before")
    @classmethod
    def parse_area(cls, v):
        return _area_value(v)
