import random

from prpal.core.tabs import (
    HOME_TAB,
    MAX_OPEN_TABS,
    TabEntry,
    TabState,
    add_tab,
    cleanup_orphans,
    normalize_review_id,
    remove_tab,
    select_tab,
)


def open_tabs(*review_ids):
    state = TabState()
    for review_id in review_ids:
        state = add_tab(state, review_id)
    return state


def test_normalize_review_id_accepts_prefixed_and_bare_ids():
    assert normalize_review_id("pr_12") == "12"
    assert normalize_review_id("12") == "12"
    assert normalize_review_id(12) == "12"
    assert normalize_review_id(None) == ""


def test_entry_keys():
    assert TabEntry.pr(7).key == "pr_7"
    assert TabEntry.parse("pr_7") == TabEntry.pr("7")
    assert TabEntry.parse("home") == HOME_TAB
    assert HOME_TAB.review_id is None


def test_from_session_tolerates_missing_values():
    state = TabState.from_session(None, None)
    assert state.open_tabs == []
    assert state.active_tab == HOME_TAB


def test_add_tab_appends_without_changing_active_tab():
    state = open_tabs("1", "2")
    assert state.open_tab_keys() == ["pr_1", "pr_2"]
    assert state.active_tab == HOME_TAB


def test_add_tab_moves_existing_entry_to_the_end():
    state = add_tab(open_tabs("1", "2", "3"), "1")
    assert state.open_tab_keys() == ["pr_2", "pr_3", "pr_1"]


def test_add_tab_is_idempotent_for_the_last_entry():
    state = open_tabs("1", "2")
    assert add_tab(state, "2") == state


def test_add_tab_treats_prefixed_and_bare_ids_as_the_same_tab():
    state = open_tabs("pr_4", 4, "4")
    assert state.open_tab_keys() == ["pr_4"]


def test_add_tab_evicts_oldest_beyond_the_cap():
    state = open_tabs(*[str(i) for i in range(1, 8)])
    assert len(state.open_tabs) == MAX_OPEN_TABS
    assert state.open_tab_keys() == ["pr_3", "pr_4", "pr_5", "pr_6", "pr_7"]


def test_random_add_sequences_keep_most_recent_unique_tabs():
    rng = random.Random(1234)
    state = TabState()
    history = []
    for _ in range(300):
        review_id = str(rng.randint(1, 9))
        state = add_tab(state, review_id)
        history.append(review_id)

        keys = state.open_tab_keys()
        assert len(keys) <= MAX_OPEN_TABS
        assert len(keys) == len(set(keys))

        expected = []
        for seen in reversed(history):
            if seen not in expected:
                expected.append(seen)
            if len(expected) == MAX_OPEN_TABS:
                break
        assert keys == [f"pr_{review_id}" for review_id in reversed(expected)]


def test_missing_pr_id_opens_degenerate_tab():
    state = add_tab(TabState(), None)
    assert state.open_tab_keys() == ["pr_"]


def test_remove_tab_keeps_active_tab_when_another_closes():
    state = select_tab(open_tabs("1", "2", "3"), "pr_3")
    state = remove_tab(state, "1")
    assert state.open_tab_keys() == ["pr_2", "pr_3"]
    assert state.active_tab.key == "pr_3"


def test_remove_active_tab_falls_back_to_last_remaining_tab():
    state = select_tab(open_tabs("1", "2", "3"), "pr_2")
    state = remove_tab(state, "pr_2")
    assert state.open_tab_keys() == ["pr_1", "pr_3"]
    assert state.active_tab.key == "pr_3"


def test_remove_last_active_tab_falls_back_to_home():
    state = select_tab(open_tabs("1"), "pr_1")
    state = remove_tab(state, "1")
    assert state.open_tabs == []
    assert state.active_tab == HOME_TAB


def test_remove_missing_tab_is_a_no_op():
    state = open_tabs("1", "2")
    assert remove_tab(state, "9").open_tab_keys() == ["pr_1", "pr_2"]


def test_select_tab_does_not_reorder():
    state = select_tab(open_tabs("1", "2", "3"), "pr_1")
    assert state.open_tab_keys() == ["pr_1", "pr_2", "pr_3"]
    assert state.active_tab.key == "pr_1"


def test_select_blank_tab_goes_home():
    state = select_tab(open_tabs("1"), "")
    assert state.active_tab == HOME_TAB


def test_cleanup_of_missing_state_returns_empty_state():
    assert cleanup_orphans(None, lambda review_id: True) == TabState()


def test_cleanup_drops_blank_and_malformed_entries():
    state = TabState.from_session(["pr_", "", "  ", "pr_abc", "garbage", "pr_5"], "home")
    cleaned = cleanup_orphans(state, lambda review_id: review_id.isdigit())
    assert cleaned.open_tab_keys() == ["pr_5"]


def test_cleanup_drops_missing_reviews_and_duplicates():
    state = TabState.from_session(["pr_1", "pr_2", "pr_1", "3"], "pr_1")
    cleaned = cleanup_orphans(state, lambda review_id: review_id in {"1", "3"})
    assert cleaned.open_tab_keys() == ["pr_1", "pr_3"]
    assert cleaned.active_tab.key == "pr_1"


def test_session_round_trip():
    state = select_tab(open_tabs("1", "2"), "pr_2")
    stored = state.to_session()
    assert stored == {"open_tabs": ["pr_1", "pr_2"], "active_tab": "pr_2"}
    assert TabState.from_session(stored["open_tabs"], stored["active_tab"]) == state
