"""Open-tab bookkeeping for the review dashboard.

Tab state is a plain value: callers load a ``TabState`` from wherever the
browser session lives, run one of the operations below, and persist the
returned state. Nothing here touches a request or a database.

Entries are stored as string keys (``pr_<id>`` for review tabs, the bare name
for named tabs such as ``home``) so the stored form stays JSON friendly.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, List, Optional

from prpal.utils.logger import logger

MAX_OPEN_TABS = 5
PR_TAB_PREFIX = "pr_"
HOME_TAB_NAME = "home"

PR_KIND = "pr"
NAMED_KIND = "named"


@dataclass(frozen=True)
class TabEntry:
    """Either a review tab (``kind="pr"``) or a named tab (``kind="named"``)."""

    kind: str
    value: str

    @classmethod
    def pr(cls, review_id: Any) -> "TabEntry":
        return cls(PR_KIND, normalize_review_id(review_id))

    @classmethod
    def named(cls, name: str) -> "TabEntry":
        return cls(NAMED_KIND, name)

    @classmethod
    def parse(cls, key: Any) -> "TabEntry":
        """Read a stored key. Anything that isn't ``pr_``-prefixed is a named tab."""
        key = "" if key is None else str(key)
        if key.startswith(PR_TAB_PREFIX):
            return cls(PR_KIND, key[len(PR_TAB_PREFIX):])
        return cls(NAMED_KIND, key)

    @property
    def is_pr(self) -> bool:
        return self.kind == PR_KIND

    @property
    def review_id(self) -> Optional[str]:
        return self.value if self.is_pr else None

    @property
    def key(self) -> str:
        if self.is_pr:
            return f"{PR_TAB_PREFIX}{self.value}"
        return self.value


HOME_TAB = TabEntry.named(HOME_TAB_NAME)


def normalize_review_id(review_id: Any) -> str:
    """Accept ``12``, ``"12"`` or ``"pr_12"`` and return ``"12"``.

    ``None`` becomes the empty string, which yields the degenerate ``pr_``
    entry when opened; dashboard cleanup later discards it.
    """
    if review_id is None:
        return ""
    review_id = str(review_id).strip()
    if review_id.startswith(PR_TAB_PREFIX):
        review_id = review_id[len(PR_TAB_PREFIX):]
    return review_id


@dataclass(frozen=True)
class TabState:
    open_tabs: List[TabEntry] = field(default_factory=list)
    active_tab: TabEntry = HOME_TAB

    @classmethod
    def from_session(
        cls, open_tabs: Optional[Iterable[Any]], active_tab: Optional[str] = None
    ) -> "TabState":
        entries = [TabEntry.parse(key) for key in (open_tabs or [])]
        active = TabEntry.parse(active_tab) if active_tab else HOME_TAB
        return cls(open_tabs=entries, active_tab=active)

    def open_tab_keys(self) -> List[str]:
        return [entry.key for entry in self.open_tabs]

    def to_session(self) -> dict:
        return {"open_tabs": self.open_tab_keys(), "active_tab": self.active_tab.key}

    def includes(self, entry: TabEntry) -> bool:
        return entry in self.open_tabs


def add_tab(state: TabState, review_id: Any) -> TabState:
    """Move (or append) the review's tab to the end and cap the list.

    The oldest entries are evicted first. The active tab is left alone;
    callers that want the new tab focused follow up with ``select_tab``.
    """
    entry = TabEntry.pr(review_id)
    tabs = [tab for tab in state.open_tabs if tab != entry]
    tabs.append(entry)
    tabs = tabs[-MAX_OPEN_TABS:]
    logger.debug(f"add_tab: {entry.key} -> {[tab.key for tab in tabs]}")
    return replace(state, open_tabs=tabs)


def remove_tab(state: TabState, review_id: Any) -> TabState:
    entry = TabEntry.pr(review_id)
    tabs = [tab for tab in state.open_tabs if tab != entry]
    active = state.active_tab
    if active == entry:
        active = tabs[-1] if tabs else HOME_TAB
    logger.debug(f"remove_tab: {entry.key} -> {[tab.key for tab in tabs]}")
    return TabState(open_tabs=tabs, active_tab=active)


def select_tab(state: TabState, tab: Any) -> TabState:
    """Point the active tab at ``tab`` without touching the open-tab order."""
    entry = tab if isinstance(tab, TabEntry) else TabEntry.parse(tab)
    if not entry.value:
        entry = HOME_TAB
    return replace(state, active_tab=entry)


def cleanup_orphans(
    state: Optional[TabState], review_exists: Callable[[str], bool]
) -> TabState:
    """Drop blank, malformed, duplicate and dangling review tabs.

    ``review_exists`` receives the bare review id and must answer whether a
    review with that id exists *for the current user*. Entries without the
    ``pr_`` prefix are treated as review ids too, so junk never survives.
    """
    if state is None:
        return TabState()

    valid: List[TabEntry] = []
    for entry in state.open_tabs:
        review_id = entry.value.strip()
        if not review_id:
            logger.debug(f"Cleaning blank tab: {entry.key!r}")
            continue
        if not review_exists(review_id):
            logger.debug(f"Cleaning orphaned tab: {entry.key}")
            continue
        cleaned = TabEntry.pr(review_id)
        if cleaned not in valid:
            valid.append(cleaned)

    return replace(state, open_tabs=valid)
