from datetime import datetime, timedelta, timezone

from sqlmodel import select

from app.models.claim import Claim, ClaimStatus
from app.models.item import Item
from app.services import claims
from app.services.item_stats import (
    compute_item_stats,
    refresh_all_item_stats,
    refresh_item_stats,
    refresh_item_stats_safely,
    summarize_message,
)


def add_claim(session, item, user, status=ClaimStatus.pending, message="mine", minutes_ago=0):
    claim = Claim(
        item_id=item.id,
        claimant_id=user.id,
        owner_id=item.user_id,
        message=message,
        proof_description="-",
        contact_email=user.email,
        status=status,
        created_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
    )
    session.add(claim)
    session.commit()
    return claim


def live_counts(session, item):
    rows = session.exec(select(Claim).where(Claim.item_id == item.id)).all()
    return (
        len(rows),
        sum(1 for c in rows if c.status == ClaimStatus.pending),
        sum(1 for c in rows if c.status == ClaimStatus.approved),
    )


def test_summarize_message_only_marks_cut_messages():
    assert summarize_message("short") == "short"
    assert summarize_message("x" * 50) == "x" * 50
    assert summarize_message("x" * 60) == "x" * 50 + "..."


def test_stats_match_live_claims(session, item, claimant, other_claimant, make_user):
    add_claim(session, item, claimant, ClaimStatus.rejected, minutes_ago=30)
    add_claim(session, item, other_claimant, ClaimStatus.approved, minutes_ago=20)
    add_claim(session, item, make_user("Last Claimant"), message="y" * 80, minutes_ago=1)

    refresh_item_stats(session, item.id)

    assert (item.total_claims, item.pending_claims, item.approved_claims) == live_counts(session, item)
    assert item.recent_claimant_name == "Last Claimant"
    assert item.recent_claim_status == "pending"
    assert item.recent_claim_message == "y" * 50 + "..."
    assert item.stats_updated_at is not None


def test_refresh_is_idempotent(session, item, claimant, other_claimant):
    add_claim(session, item, claimant)
    add_claim(session, item, other_claimant, ClaimStatus.rejected)

    first = refresh_item_stats(session, item.id)
    second = refresh_item_stats(session, item.id)

    assert first == second
    assert item.total_claims == 2
    assert item.pending_claims == 1


def test_stats_without_claims_are_cleared(session, item, claimant):
    claim = add_claim(session, item, claimant)
    refresh_item_stats(session, item.id)

    session.delete(claim)
    session.commit()
    refresh_item_stats(session, item.id)

    assert item.total_claims == 0
    assert item.recent_claimant_name is None


def test_lifecycle_keeps_stats_current(session, item, owner, claimant):
    claim = claims.submit_claim(session, item.id, claimant, "mine")
    assert item.total_claims == 1
    assert item.pending_claims == 1
    assert item.recent_claimant_name == claimant.name

    claims.approve_claim(session, claim.id, owner)
    assert item.pending_claims == 0
    assert item.approved_claims == 1
    assert item.recent_claim_status == "approved"


def test_refresh_safely_swallows_failures(session, item, monkeypatch):
    def broken(session, item_id):
        raise RuntimeError("db hiccup")

    monkeypatch.setattr("app.services.item_stats.compute_item_stats", broken)

    assert refresh_item_stats_safely(session, item.id) is False


def test_refresh_all(session, make_item, owner, claimant):
    first = make_item(owner)
    second = make_item(owner, name="Keys")
    add_claim(session, second, claimant)

    assert refresh_all_item_stats(session) == 2

    assert compute_item_stats(session, first.id)["total_claims"] == 0
    assert session.get(Item, second.id).total_claims == 1
