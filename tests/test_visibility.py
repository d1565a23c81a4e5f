from __future__ import annotations

from constellation.core.privacy.models import TIER_ORDER, Allowlist, Curation
from constellation.core.privacy.visibility import (
    apply_allowlist,
    apply_curation_hidden,
    assign_visibility,
    filter_private,
    resolve_visibility,
)
from tests.helpers.builders import make_record


def test_non_public_person_caps_at_friends_and_is_renamed():
    al = Allowlist(public=["Alice Smith"])
    rec = make_record("a", people=["Alice Smith", "Unknown Person"], visibility="public")

    resolved = resolve_visibility([rec], al, None)
    assert resolved[0].visibility == "friends"

    renamed = apply_allowlist(resolved, al)
    assert renamed[0].entities.people == ["Alice Smith", "Friend"]
    # input untouched
    assert rec.entities.people == ["Alice Smith", "Unknown Person"]


def test_friends_listed_name_is_kept_but_capped():
    al = Allowlist(friends=["Bob"])
    rec = make_record("a", people=["bob"], visibility="public")
    assert assign_visibility(rec, al, {}) == "friends"
    assert apply_allowlist([rec], al)[0].entities.people == ["bob"]


def test_all_public_people_keep_public_tier():
    al = Allowlist(public=["Alice Smith", "Carol"])
    rec = make_record("a", people=[" alice smith ", "CAROL"], visibility="public")
    assert assign_visibility(rec, al, {}) == "public"


def test_curation_override_can_raise_and_lower():
    al = Allowlist()
    assert assign_visibility(make_record("a", visibility="private"), al, {"a": "public"}) == "public"
    assert assign_visibility(make_record("a", visibility="public"), al, {"a": "private"}) == "private"


def test_override_cannot_bypass_person_cap():
    al = Allowlist()
    rec = make_record("a", people=["Stranger"], visibility="private")
    assert assign_visibility(rec, al, {"a": "public"}) == "friends"


def test_most_restrictive_never_widens():
    al = Allowlist(public=["Ann"])
    for tier in TIER_ORDER:
        for people in ([], ["Ann"], ["Zed"]):
            rec = make_record("a", people=people, visibility=tier)
            out = assign_visibility(rec, al, {})
            assert TIER_ORDER.index(out) <= TIER_ORDER.index(tier)
            if "Zed" in people:
                assert TIER_ORDER.index(out) <= TIER_ORDER.index("friends")


def test_unknown_override_tiers_are_dropped():
    cur = Curation(visibility_overrides={"a": "everyone", "b": "friends"})
    assert cur.visibility_overrides == {"b": "friends"}


def test_hidden_and_private_are_removed(report):
    recs = [make_record("a"), make_record("b", visibility="private"), make_record("c")]
    kept = apply_curation_hidden(recs, Curation(hidden=["c"]), report)
    assert [r.id for r in kept] == ["a", "b"]
    assert [r.id for r in filter_private(kept, report)] == ["a"]
