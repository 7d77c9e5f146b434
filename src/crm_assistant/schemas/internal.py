"""Internal DTOs used within the assistant service."""

from typing import Any, Literal

from pydantic import BaseModel, Field

DatasetName = Literal["leads", "activities", "orders", "partners", "products"]

ANONYMOUS_USER_NAME = "Usuário"


def extract_items(payload: Any, wrapper_field: str | None) -> list[Any]:
    """Decode the item list out of a cached or fetched JSON payload.

    Endpoints and cache producers use one of two shapes: the list itself
    (direct) or an object holding the list under ``wrapper_field`` (wrapped).
    Any other shape decodes to an empty list.
    """
    if isinstance(payload, list):
        return payload
    if wrapper_field and isinstance(payload, dict):
        items = payload.get(wrapper_field)
        if isinstance(items, list):
            return items
    return []


class DatasetQuery(BaseModel):
    """How one logical dataset is acquired and bounded."""

    name: DatasetName
    cache_keys: list[str] = Field(
        default_factory=list,
        description="Candidate cache keys, most preferred first",
    )
    path: str = Field(..., description="Path on the data API, may contain {user_id}")
    timeout_ms: int = Field(..., gt=0, description="Deadline for the live fetch")
    cap: int | None = Field(
        default=None,
        ge=0,
        description="Maximum number of items kept, None keeps every item",
    )
    recent_cap: int | None = Field(
        default=None,
        ge=0,
        description="Cap for the separately tracked recent subset",
    )
    wrapper_field: str | None = Field(
        default=None,
        description="Field holding the list when the payload is wrapped",
    )
    forward_identity: bool = Field(
        default=False,
        description="Send the caller identity as a session cookie",
    )

    @property
    def display_cap(self) -> int | None:
        """How many items the snapshot lists for this dataset."""
        return self.recent_cap if self.recent_cap is not None else self.cap

    def render_path(self, user_id: int) -> str:
        return self.path.format(user_id=user_id)


class CacheHit(BaseModel):
    """A non-empty item list found under one of the candidate keys."""

    key: str
    items: list[Any]


class DatasetSlice(BaseModel):
    """Bounded view of one dataset inside a snapshot."""

    items: list[Any] = Field(default_factory=list, description="Bounded items, source order")
    available: int = Field(default=0, description="Item count before truncation")
    source: Literal["cache", "live", "none"] = "none"
    status: Literal["success", "error", "timeout"] = "success"
    error_message: str | None = None


class Snapshot(BaseModel):
    """Point-in-time aggregation of a user's business data.

    Every field has an empty default so a snapshot can always be produced,
    even when every source failed.
    """

    user_name: str = ANONYMOUS_USER_NAME
    leads: DatasetSlice = Field(default_factory=DatasetSlice)
    activities: DatasetSlice = Field(default_factory=DatasetSlice)
    partners: DatasetSlice = Field(default_factory=DatasetSlice)
    products: DatasetSlice = Field(default_factory=DatasetSlice)
    orders: DatasetSlice = Field(
        default_factory=DatasetSlice,
        description="Recent orders; `available` is the full order count",
    )
    order_count: int = 0
    order_total: float = 0.0


class UserIdentity(BaseModel):
    """Caller identity taken from the session cookie."""

    user_id: int = 0
    name: str = ANONYMOUS_USER_NAME
