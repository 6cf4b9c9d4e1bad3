from __future__ import annotations

from collections import Counter
from typing import Any


def _rate(count: int, total: int) -> float:
    return round(count / total * 100, 1) if total else 0.0


def _top(events: list[dict[str, Any]], key: str, n: int = 10) -> list[dict[str, Any]]:
    counter: Counter[str] = Counter()
    for e in events:
        for tag in e.get(key) or []:
            counter[tag] += 1
    return [{"name": name, "count": count} for name, count in counter.most_common(n)]


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    searches = [e for e in events if e["type"] == "search"]
    spins = [e for e in events if e["type"] == "roulette"]
    total = len(searches)

    times = [e["response_time_ms"] for e in searches + spins if "response_time_ms" in e]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Filter usage rates
    filter_counts = {"price_max": 0, "rating_min": 0, "categories": 0, "features": 0, "open_now": 0}
    for s in searches:
        if s.get("price_max") is not None:
            filter_counts["price_max"] += 1
        if s.get("rating_min") is not None:
            filter_counts["rating_min"] += 1
        if s.get("categories"):
            filter_counts["categories"] += 1
        if s.get("features"):
            filter_counts["features"] += 1
        if s.get("open_now"):
            filter_counts["open_now"] += 1
    filter_usage = {k: _rate(v, total) for k, v in filter_counts.items()}

    empty_searches = sum(1 for s in searches if s.get("results_returned") == 0)
    picked: Counter[str] = Counter(e["place_id"] for e in spins if e.get("place_id"))

    return {
        "total_searches": total,
        "total_spins": len(spins),
        "avg_response_time_ms": avg_time,
        "empty_result_rate": _rate(empty_searches, total),
        "filter_usage": filter_usage,
        "top_categories": _top(searches + spins, "categories"),
        "top_features": _top(searches + spins, "features"),
        "top_roulette_picks": [
            {"place_id": pid, "count": count} for pid, count in picked.most_common(10)
        ],
    }
