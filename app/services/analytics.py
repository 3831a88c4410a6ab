"""
Read-only reporting over items, claims and users.

Every figure is recomputed from the current rows at query time; nothing here
writes to the database.
"""
from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone
from typing import Optional
from sqlalchemy import case
from sqlmodel import Session, func, select

from app.models.claim import Claim, ClaimStatus
from app.models.item import Item, ItemStatus, ItemType
from app.models.user import User

PERIOD_FORMATS = {
    "daily": "%Y-%m-%d",
    "weekly": "%Y-%U",  # year-week number
    "monthly": "%Y-%m",
}


def _value(v):
    return v.value if hasattr(v, "value") else v


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands datetimes back without tzinfo
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt


def _rate(part: int, total: int) -> float:
    return round(part / total * 100, 2) if total else 0.0


def _returned_sum():
    return func.sum(case((Item.status == ItemStatus.returned, 1), else_=0))


def dashboard_stats(session: Session, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)

    type_rows = session.exec(
        select(Item.type, func.count(Item.id), _returned_sum())
        .group_by(Item.type)
        .order_by(func.count(Item.id).desc())
    ).all()

    type_stats = [
        {"type": _value(t), "count": count, "return_rate": _rate(returned or 0, count)}
        for t, count, returned in type_rows
    ]

    status_rows = session.exec(
        select(Item.status, func.count(Item.id))
        .group_by(Item.status)
        .order_by(func.count(Item.id).desc())
    ).all()

    status_stats = [{"status": _value(s), "count": count} for s, count in status_rows]

    category_rows = session.exec(
        select(Item.category, func.count(Item.id), _returned_sum())
        .group_by(Item.category)
        .order_by(func.count(Item.id).desc())
        .limit(5)
    ).all()

    category_stats = [
        {
            "category": category,
            "total": total,
            "returned": returned or 0,
            "resolution_rate": _rate(returned or 0, total),
        }
        for category, total, returned in category_rows
    ]

    week_ago = now - timedelta(days=7)
    recent_items = session.exec(
        select(Item)
        .where(Item.created_at >= week_ago)
        .order_by(Item.created_at.desc())
        .limit(10)
    ).all()

    recent_activity = [
        {
            "id": str(item.id),
            "name": item.name,
            "type": _value(item.type),
            "category": item.category,
            "status": _value(item.status),
            "created_at": item.created_at,
            "day": item.created_at.strftime("%Y-%m-%d"),
        }
        for item in recent_items
    ]

    total_items = session.exec(select(func.count(Item.id))).one()
    resolved_items = session.exec(
        select(func.count(Item.id)).where(Item.status == ItemStatus.returned)
    ).one()

    summary = {
        "total_items": total_items,
        "total_users": session.exec(select(func.count(User.id))).one(),
        "pending_claims": session.exec(
            select(func.count(Claim.id)).where(Claim.status == ClaimStatus.pending)
        ).one(),
        "resolved_items": resolved_items,
        "resolution_rate": _rate(resolved_items, total_items),
    }

    return {
        "type_stats": type_stats,
        "status_stats": status_stats,
        "category_stats": category_stats,
        "recent_activity": recent_activity,
        "summary": summary,
    }


def category_analytics(session: Session) -> list:
    rows = session.exec(
        select(
            Item.category,
            func.count(Item.id),
            func.sum(case((Item.type == ItemType.lost, 1), else_=0)),
            func.sum(case((Item.type == ItemType.found, 1), else_=0)),
            func.sum(case((Item.status == ItemStatus.available, 1), else_=0)),
            func.sum(case((Item.status == ItemStatus.claim_pending, 1), else_=0)),
            _returned_sum(),
            func.avg(Item.total_claims),
            func.count(func.distinct(Item.user_id)),
        )
        .group_by(Item.category)
        .order_by(func.count(Item.id).desc())
    ).all()

    return [
        {
            "category": category,
            "total_items": total,
            "lost_items": lost or 0,
            "found_items": found or 0,
            "available_items": available or 0,
            "pending_items": pending or 0,
            "returned_items": returned or 0,
            "resolution_rate": _rate(returned or 0, total),
            "avg_claims": round(float(avg_claims or 0), 2),
            "unique_reporters": reporters,
        }
        for category, total, lost, found, available, pending, returned, avg_claims, reporters in rows
    ]


def user_activity(session: Session, limit: int = 20, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)

    rows = session.exec(
        select(
            User,
            func.count(Item.id),
            _returned_sum(),
            func.max(Item.created_at),
            func.count(func.distinct(Item.category)),
        )
        .join(Item, Item.user_id == User.id)
        .group_by(User.id)
        .order_by(func.count(Item.id).desc())
        .limit(limit)
    ).all()

    active_users = []
    for user, reported, returned, last_activity, categories in rows:
        last_activity = as_utc(last_activity)

        active_users.append({
            "user_id": user.public_id,
            "user_name": user.name,
            "user_email": user.email,
            "user_role": _value(user.role),
            "items_reported": reported,
            "items_returned": returned or 0,
            "resolution_rate": _rate(returned or 0, reported),
            "categories_count": categories,
            "last_activity": last_activity,
            "days_since_last_activity": round((now - last_activity).total_seconds() / 86400, 2),
        })

    avg_items = (
        round(sum(u["items_reported"] for u in active_users) / len(active_users), 2)
        if active_users else 0.0
    )

    return {
        "active_users": active_users,
        "total_users": session.exec(select(func.count(User.id))).one(),
        "avg_items_per_user": avg_items,
    }


def time_analytics(session: Session, period: str = "monthly") -> dict:
    """Bucket items and claims by creation time (daily, weekly or monthly)."""
    if period not in PERIOD_FORMATS:
        period = "monthly"

    fmt = PERIOD_FORMATS[period]

    item_buckets = defaultdict(lambda: {
        "total_items": 0, "lost_items": 0, "found_items": 0, "returned_items": 0,
        "resolution_days": [], "date": None,
    })

    for item in session.exec(select(Item).order_by(Item.created_at)).all():
        bucket = item_buckets[item.created_at.strftime(fmt)]

        bucket["total_items"] += 1
        if bucket["date"] is None:
            bucket["date"] = item.created_at

        if item.type == ItemType.lost:
            bucket["lost_items"] += 1
        else:
            bucket["found_items"] += 1

        if item.status == ItemStatus.returned:
            bucket["returned_items"] += 1

        if item.resolved_date:
            delta = as_utc(item.resolved_date) - as_utc(item.created_at)
            bucket["resolution_days"].append(delta.total_seconds() / 86400)

    item_stats = []
    for key in sorted(item_buckets):
        b = item_buckets[key]
        days = b.pop("resolution_days")

        item_stats.append({
            "period": key,
            **b,
            "resolution_rate": _rate(b["returned_items"], b["total_items"]),
            "avg_resolution_time": round(sum(days) / len(days), 2) if days else None,
        })

    claim_buckets = defaultdict(Counter)
    for claim in session.exec(select(Claim)).all():
        bucket = claim_buckets[claim.created_at.strftime(fmt)]
        bucket["total_claims"] += 1
        bucket[f"{_value(claim.status)}_claims"] += 1

    claim_stats = [
        {
            "period": key,
            "total_claims": claim_buckets[key]["total_claims"],
            "approved_claims": claim_buckets[key]["approved_claims"],
            "pending_claims": claim_buckets[key]["pending_claims"],
            "approval_rate": _rate(claim_buckets[key]["approved_claims"], claim_buckets[key]["total_claims"]),
        }
        for key in sorted(claim_buckets)
    ]

    periods = len(item_stats)

    return {
        "period": period,
        "item_stats": item_stats,
        "claim_stats": claim_stats,
        "summary": {
            "total_periods": periods,
            "avg_items_per_period": round(sum(s["total_items"] for s in item_stats) / periods, 2) if periods else 0.0,
            "avg_resolution_rate": round(sum(s["resolution_rate"] for s in item_stats) / periods, 2) if periods else 0.0,
        },
    }


def search_analytics(session: Session) -> dict:
    items = session.exec(select(Item)).all()

    tag_counts = Counter()
    tag_items = defaultdict(list)
    for item in items:
        for tag in item.search_tags or []:
            tag_counts[tag] += 1
            tag_items[tag].append({"name": item.name, "id": str(item.id)})

    tag_stats = [
        {"tag": tag, "count": count, "items": tag_items[tag]}
        for tag, count in tag_counts.most_common(20)
    ]

    category_counts = Counter(item.category for item in items)
    category_items = defaultdict(list)
    for item in items:
        category_items[item.category].append(item.name)

    popular_categories = [
        {"category": category, "count": count, "items": category_items[category]}
        for category, count in category_counts.most_common(10)
    ]

    popular = session.exec(
        select(Item)
        .where(Item.total_claims > 0)
        .order_by(Item.total_claims.desc())
        .limit(10)
    ).all()

    popular_items = [
        {
            "id": str(item.id),
            "name": item.name,
            "category": item.category,
            "type": _value(item.type),
            "status": _value(item.status),
            "total_claims": item.total_claims,
            "pending_claims": item.pending_claims,
            "created_at": item.created_at,
        }
        for item in popular
    ]

    return {
        "tag_stats": tag_stats,
        "popular_categories": popular_categories,
        "popular_items": popular_items,
    }


def embedded_health(session: Session) -> dict:
    """How many items carry each of the cached (denormalized) fields."""
    items = session.exec(select(Item)).all()
    total = len(items)

    with_reporter = sum(1 for i in items if i.reporter_name and i.reporter_email)
    with_stats = sum(1 for i in items if i.stats_updated_at is not None)
    with_recent = sum(1 for i in items if i.recent_claimant_name)
    with_tags = sum(1 for i in items if i.search_tags)

    with_embedded = sum(1 for i in items if i.reporter_name or i.stats_updated_at is not None)

    return {
        "with_embedded": with_embedded,
        "without_embedded": total - with_embedded,
        "completeness": {
            "total_items": total,
            "with_reporter_info": with_reporter,
            "with_stats": with_stats,
            "with_recent_claim": with_recent,
            "with_search_tags": with_tags,
        },
        "percentage": {
            "reporter_info": _rate(with_reporter, total),
            "stats": _rate(with_stats, total),
        },
    }


def home_stats(session: Session) -> dict:
    total_items = session.exec(select(func.count(Item.id))).one()
    total_claims = session.exec(select(func.count(Claim.id))).one()

    approved = session.exec(
        select(Claim).where(Claim.status == ClaimStatus.approved)
    ).all()

    response_hours = [
        (as_utc(c.resolved_at) - as_utc(c.created_at)).total_seconds() / 3600
        for c in approved
        if c.resolved_at
    ]

    return {
        "total_items": total_items,
        "recovered_items": session.exec(
            select(func.count(Item.id)).where(Item.status == ItemStatus.returned)
        ).one(),
        "active_users": session.exec(
            select(func.count(User.id)).where(User.is_verified == True)  # noqa: E712
        ).one(),
        "success_rate": round(len(approved) / total_claims * 100) if total_claims else 0,
        # 24h is shown until at least one claim has been approved
        "avg_response": round(sum(response_hours) / len(response_hours)) if response_hours else 24,
    }
