from sqlalchemy import MetaData, Table, Column, Integer, String, Text, Float, Boolean, DateTime, JSON
from sqlalchemy.sql import select

metadata = MetaData()

# ---------- Tables ----------
listings = Table(
    "listings", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False),
    Column("description", Text),
    Column("area", Float),
    Column("bedrooms", Integer),
    Column("features", JSON, nullable=False, default=list),
    Column("type", String(8), nullable=False),       # sale | rent
    Column("offer", Boolean, nullable=False, default=False),
    Column("furnished", Boolean, nullable=False, default=False),
    Column("parking", Boolean, nullable=False, default=False),
    Column("user_ref", String, nullable=False, index=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

LISTING_TYPES = ("sale", "rent")

# Fields a body may write on update; id and user_ref are never among them.
MUTABLE_FIELDS = (
    "name", "area", "bedrooms", "features", "type", "description",
    "offer", "furnished", "parking",
)

# ---------- Public selectors ----------

def listing_select():
    return select(listings)

def create_schema(engine) -> None:
    metadata.create_all(engine)
