"""Default route table for the web application fronted by the guard.

Only the access flags matter here; the page components behind each route live
in the consuming application.
"""

from __future__ import annotations

from typing import List

from ..schemas.routes import RouteMeta, RouteRecord

ADMIN_CHILDREN = [
    RouteRecord(path="", name="admin-dashboard"),
    RouteRecord(path="logs", name="admin-logs"),
    RouteRecord(path="users", name="admin-users"),
    RouteRecord(path="database", name="admin-database"),
    RouteRecord(path="health", name="admin-health"),
    RouteRecord(path="monitor", name="admin-realtime-monitor"),
]


def default_routes() -> List[RouteRecord]:
    return [
        RouteRecord(path="/", name="home"),
        RouteRecord(path="/login", name="login"),
        RouteRecord(path="/register", name="register"),
        RouteRecord(path="/profile", name="profile", meta=RouteMeta(requires_auth=True)),
        RouteRecord(path="/admin/login", name="admin-login"),
        RouteRecord(path="/admin", meta=RouteMeta(requires_admin=True), children=list(ADMIN_CHILDREN)),
    ]
