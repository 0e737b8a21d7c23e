"""
Navigation state and its URL projection.

The query string ``?tab=<tab>&space=<id>&company=<id>`` is a projection of
``NavigationState``; ``company`` is a legacy alias of ``space``.
"""

from dataclasses import dataclass, replace
from typing import Mapping, Optional, Union
from urllib.parse import parse_qs, urlencode, urlsplit

from parrot.core.models import UserRole
from parrot.core.navigation.tabs import TabId, parse_tab


@dataclass(frozen=True)
class NavSession:
    """Signed-in user as seen by the reconciler. Immutable for a session."""
    user_id: str
    role: UserRole
    company_id: Optional[str] = None


@dataclass(frozen=True)
class Projection:
    """The (tab, space) pair a settled URL encodes."""
    tab: TabId
    space: Optional[str] = None

    def __str__(self) -> str:
        return build_query(self)


@dataclass(frozen=True)
class NavigationState:
    """
    Session-scoped dashboard navigation state.

    ``selected_company`` mirrors ``current_space_id`` for legacy consumers.
    """
    active_tab: TabId
    current_space_id: Optional[str] = None
    selected_company: Optional[str] = None

    @property
    def projection(self) -> Projection:
        return Projection(self.active_tab, self.current_space_id)

    def with_projection(self, projection: Projection) -> "NavigationState":
        return replace(
            self,
            active_tab=projection.tab,
            current_space_id=projection.space,
            selected_company=projection.space,
        )

    def with_space(self, space_id: Optional[str]) -> "NavigationState":
        return replace(self, current_space_id=space_id, selected_company=space_id)

    def to_dict(self) -> dict:
        return {
            "active_tab": self.active_tab.value,
            "current_space_id": self.current_space_id,
            "selected_company": self.selected_company,
        }


@dataclass(frozen=True)
class ObservedUrl:
    """Parsed dashboard query. Any field may be missing."""
    tab: Optional[TabId] = None
    space: Optional[str] = None
    company: Optional[str] = None
    raw_tab: Optional[str] = None

    @property
    def effective_space(self) -> Optional[str]:
        """Space param, falling back to the legacy company alias."""
        return self.space or self.company

    @property
    def has_unknown_tab(self) -> bool:
        return self.tab is None and bool(self.raw_tab)

    def projection(self) -> Optional[Projection]:
        if self.tab is None:
            return None
        return Projection(self.tab, self.effective_space)


def _clean(value: object) -> Optional[str]:
    # Mappings from callers may carry anything; non-strings count as absent.
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def build_query(projection: Projection, emit_company_alias: bool = False) -> str:
    """Render a projection as a query string (without the leading ``?``)."""
    params = [("tab", projection.tab.value)]
    if projection.space:
        params.append(("space", projection.space))
        if emit_company_alias:
            params.append(("company", projection.space))
    return urlencode(params)


def build_url(
    base_path: str,
    projection: Projection,
    emit_company_alias: bool = False,
) -> str:
    return f"{base_path}?{build_query(projection, emit_company_alias)}"


def parse_query(query: Union[str, Mapping[str, object], None]) -> ObservedUrl:
    """
    Parse a query string, full URL or mapping into an ``ObservedUrl``.

    Empty values count as absent. Repeated keys keep the first value.
    """
    if query is None:
        return ObservedUrl()

    if isinstance(query, str):
        text = query
        if "?" in text or text.startswith("/"):
            text = urlsplit(text).query
        parsed = parse_qs(text.lstrip("?"), keep_blank_values=True)
        values = {key: items[0] for key, items in parsed.items() if items}
    else:
        values = dict(query)

    raw_tab = _clean(values.get("tab"))
    return ObservedUrl(
        tab=parse_tab(raw_tab),
        space=_clean(values.get("space")),
        company=_clean(values.get("company")),
        raw_tab=raw_tab,
    )
