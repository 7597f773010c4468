"""Folding free-text tree health values into the four dashboard buckets."""
from __future__ import annotations

import unicodedata
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

HEALTH_GOOD = "Bueno"
HEALTH_FAIR = "Regular"
HEALTH_POOR = "Malo"
HEALTH_UNKNOWN = "Desconocido"

HEALTH_BUCKETS: Tuple[str, ...] = (HEALTH_GOOD, HEALTH_FAIR, HEALTH_POOR, HEALTH_UNKNOWN)

# Column name used for tree health, by schema generation.
HEALTH_COLUMN_CANDIDATES: Tuple[str, ...] = (
    "health_condition",
    "estado",
    "health",
    "condition",
    "health_status",
)

_BUCKET_ALIASES: Dict[str, str] = {
    "bueno": HEALTH_GOOD,
    "buena": HEALTH_GOOD,
    "excelente": HEALTH_GOOD,
    "sano": HEALTH_GOOD,
    "saludable": HEALTH_GOOD,
    "good": HEALTH_GOOD,
    "healthy": HEALTH_GOOD,
    "excellent": HEALTH_GOOD,
    "regular": HEALTH_FAIR,
    "moderado": HEALTH_FAIR,
    "fair": HEALTH_FAIR,
    "moderate": HEALTH_FAIR,
    "malo": HEALTH_POOR,
    "mala": HEALTH_POOR,
    "critico": HEALTH_POOR,
    "enfermo": HEALTH_POOR,
    "muerto": HEALTH_POOR,
    "seco": HEALTH_POOR,
    "poor": HEALTH_POOR,
    "bad": HEALTH_POOR,
    "critical": HEALTH_POOR,
    "sick": HEALTH_POOR,
    "dead": HEALTH_POOR,
}


def _normalize(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    return " ".join(stripped.lower().split())


def classify_health(value: Optional[Any]) -> str:
    """Bucket for a raw health value; unknown and empty values go to Desconocido."""
    if value is None:
        return HEALTH_UNKNOWN
    return _BUCKET_ALIASES.get(_normalize(str(value)), HEALTH_UNKNOWN)


def empty_tree_summary() -> Dict[str, Any]:
    return {"total": 0, "byHealth": {bucket: 0 for bucket in HEALTH_BUCKETS}}


def summarize_health_counts(rows: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """Fold ``{"health": value, "count": n}`` rows into ``total``/``byHealth``.

    ``total`` is computed from the buckets, so the two always agree.
    """
    summary = empty_tree_summary()
    by_health = summary["byHealth"]
    for row in rows:
        count = int(row.get("count") or 0)
        if count <= 0:
            continue
        by_health[classify_health(row.get("health"))] += count
    summary["total"] = sum(by_health.values())
    return summary
