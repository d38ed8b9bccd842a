from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class RouteMeta(BaseModel):
    requires_auth: bool = Field(default=False, alias="requiresAuth")
    requires_admin: bool = Field(default=False, alias="requiresAdmin")

    model_config = {
        "populate_by_name": True,
        "frozen": True,
    }

    def merge(self, other: "RouteMeta") -> "RouteMeta":
        """Combine two metas; a flag set on either side stays set."""
        return RouteMeta(
            requires_auth=self.requires_auth or other.requires_auth,
            requires_admin=self.requires_admin or other.requires_admin,
        )


class RouteRecord(BaseModel):
    """One entry of the route table. Child paths are relative to the parent."""

    path: str
    name: Optional[str] = None
    meta: RouteMeta = Field(default_factory=RouteMeta)
    children: List["RouteRecord"] = Field(default_factory=list)

    model_config = {"frozen": True}


class RouteLocation(BaseModel):
    name: Optional[str] = None
    path: str
    query: Dict[str, str] = Field(default_factory=dict)
    meta: RouteMeta = Field(default_factory=RouteMeta)
    matched: List[RouteRecord] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def full_path(self) -> str:
        if not self.query:
            return self.path
        query = "&".join(f"{key}={value}" for key, value in self.query.items())
        return f"{self.path}?{query}"


class Redirect(BaseModel):
    """Target handed to ``proceed`` to abandon a navigation in favour of another."""

    target: str
    query: Dict[str, str] = Field(default_factory=dict)

    model_config = {"frozen": True}


class NavigationResult(BaseModel):
    status: Literal["completed", "redirected", "aborted"]
    route: Optional[RouteLocation] = None
    redirected_from: Optional[RouteLocation] = None
    redirects: int = 0
