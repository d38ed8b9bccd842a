from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import parse_qsl, urlsplit

from ..core.errors import NavigationError, RouteNotFoundError
from ..schemas.routes import NavigationResult, Redirect, RouteLocation, RouteMeta, RouteRecord

logger = logging.getLogger("sessionguard.routing")

MAX_REDIRECTS = 10

NavigationTarget = Union[RouteLocation, Redirect, str, Mapping[str, Any]]
Proceed = Callable[..., None]
BeforeHook = Callable[[RouteLocation, Optional[RouteLocation], Proceed], None]
AfterHook = Callable[[RouteLocation, Optional[RouteLocation]], None]

_PROCEED = object()
_ABORT = object()


def _join(parent: str, child: str) -> str:
    if child.startswith("/"):
        return _normalize(child)
    if not child:
        return _normalize(parent)
    return _normalize(f"{parent.rstrip('/')}/{child}")


def _normalize(path: str) -> str:
    if not path:
        return "/"
    if not path.startswith("/"):
        path = f"/{path}"
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


class Location:
    """Stand-in for the browser location; ``assign`` is a hard navigation."""

    def __init__(self, href: str = "/") -> None:
        self.href = href
        self.history: List[str] = []
        self._listeners: List[Callable[[str], None]] = []

    @property
    def reload_count(self) -> int:
        return len(self.history)

    def assign(self, href: str) -> None:
        self.href = href
        self.history.append(href)
        logger.info("location.assign", extra={"extra_data": {"href": href}})
        for listener in list(self._listeners):
            listener(href)

    def on_assign(self, listener: Callable[[str], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove


class Router:
    """Route table plus ``before_each``/``after_each`` hooks.

    ``push`` runs every before-hook in registration order. Each hook receives
    ``(to, from_, proceed)`` and must call ``proceed()`` to continue,
    ``proceed(False)`` to abort, or ``proceed(target)`` to drop the navigation
    and start a new one towards ``target``. A hook that returns without calling
    ``proceed`` aborts the navigation.
    """

    def __init__(self, routes: Sequence[RouteRecord], location: Location | None = None) -> None:
        self._by_name: Dict[str, RouteLocation] = {}
        self._by_path: Dict[str, RouteLocation] = {}
        self._index(routes, parent_path="", parents=(), parent_meta=RouteMeta())
        self._before_hooks: List[BeforeHook] = []
        self._after_hooks: List[AfterHook] = []
        self.location = location
        self.current_route: RouteLocation | None = self._by_path.get("/")
        if location is not None:
            location.on_assign(self._on_hard_navigation)

    def _index(
        self,
        records: Sequence[RouteRecord],
        *,
        parent_path: str,
        parents: Tuple[RouteRecord, ...],
        parent_meta: RouteMeta,
    ) -> None:
        for record in records:
            path = _join(parent_path, record.path) if parent_path else _normalize(record.path)
            matched = parents + (record,)
            meta = parent_meta.merge(record.meta)
            location = RouteLocation(name=record.name, path=path, meta=meta, matched=list(matched))
            if record.name:
                if record.name in self._by_name:
                    raise ValueError(f"Duplicate route name: {record.name}")
                self._by_name[record.name] = location
            # Children share the parent's path for "" entries; the deepest record wins.
            self._by_path[path] = location
            if record.children:
                self._index(record.children, parent_path=path, parents=matched, parent_meta=meta)

    @property
    def named_routes(self) -> List[RouteLocation]:
        return list(self._by_name.values())

    def resolve(self, target: NavigationTarget) -> RouteLocation:
        query: Dict[str, str] = {}
        if isinstance(target, RouteLocation):
            return target
        if isinstance(target, Redirect):
            query = dict(target.query)
            target = target.target
        elif isinstance(target, Mapping):
            query = {str(k): str(v) for k, v in (target.get("query") or {}).items()}
            target = target.get("name") or target.get("path") or ""
        if not isinstance(target, str) or not target:
            raise RouteNotFoundError(f"Cannot resolve navigation target {target!r}")

        if target.startswith("/"):
            parts = urlsplit(target)
            query = {**dict(parse_qsl(parts.query)), **query}
            base = self._by_path.get(_normalize(parts.path))
        else:
            base = self._by_name.get(target)
        if base is None:
            raise RouteNotFoundError(f"No route matches {target!r}")
        if not query:
            return base
        return base.model_copy(update={"query": query})

    def before_each(self, hook: BeforeHook) -> Callable[[], None]:
        self._before_hooks.append(hook)
        return lambda: self._before_hooks.remove(hook) if hook in self._before_hooks else None

    def after_each(self, hook: AfterHook) -> Callable[[], None]:
        self._after_hooks.append(hook)
        return lambda: self._after_hooks.remove(hook) if hook in self._after_hooks else None

    def _run_before_hooks(self, to: RouteLocation, from_: RouteLocation | None) -> Any:
        for hook in list(self._before_hooks):
            decisions: List[Any] = []

            def proceed(target: Any = None) -> None:
                if decisions:
                    raise NavigationError("proceed() called more than once in a navigation hook")
                decisions.append(target)

            hook(to, from_, proceed)
            if not decisions:
                logger.warning("navigation.hook_stalled", extra={"extra_data": {"to": to.path}})
                return _ABORT
            decision = decisions[0]
            if decision is None or decision is True:
                continue
            if decision is False:
                return _ABORT
            return decision
        return _PROCEED

    def push(self, target: NavigationTarget) -> NavigationResult:
        to = self.resolve(target)
        requested = to
        redirects = 0
        while True:
            outcome = self._run_before_hooks(to, self.current_route)
            if outcome is _PROCEED:
                from_ = self.current_route
                self.current_route = to
                for hook in list(self._after_hooks):
                    hook(to, from_)
                return NavigationResult(
                    status="redirected" if redirects else "completed",
                    route=to,
                    redirected_from=requested if redirects else None,
                    redirects=redirects,
                )
            if outcome is _ABORT:
                logger.info("navigation.aborted", extra={"extra_data": {"to": to.path}})
                return NavigationResult(
                    status="aborted",
                    route=self.current_route,
                    redirected_from=requested if redirects else None,
                    redirects=redirects,
                )
            redirects += 1
            if redirects > MAX_REDIRECTS:
                raise NavigationError(f"Too many redirects while navigating to {requested.path}")
            next_route = self.resolve(outcome)
            logger.info(
                "navigation.redirected",
                extra={"extra_data": {"from": to.path, "to": next_route.path}},
            )
            to = next_route

    def reload(self, href: str) -> NavigationResult:
        """Start over from ``href`` as a freshly loaded application would."""
        self.current_route = None
        return self.push(href)

    def _on_hard_navigation(self, href: str) -> None:
        try:
            self.resolve(href)
        except RouteNotFoundError:
            logger.warning("navigation.external_location", extra={"extra_data": {"href": href}})
            self.current_route = None
            return
        self.reload(href)
