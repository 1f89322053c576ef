"""
Geometry Store Metrics

Counters collected by a ``GeometryStore`` for monitoring cache behaviour.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class StoreMetrics:
    """
    Metrics collected across store operations.
    
    Tracks cache effectiveness and occupancy churn.
    """
    
    # Lookups
    cache_hits: int = 0
    cache_misses: int = 0
    
    # Writes
    records_created: int = 0
    records_replaced: int = 0
    signals_attached: int = 0
    
    # Anchor occupancy
    anchor_updates_applied: int = 0
    anchor_updates_ignored: int = 0
    
    def record_lookup(self, hit: bool) -> None:
        if hit:
            self.cache_hits += 1
        else:
            self.cache_misses += 1
    
    @property
    def hit_rate(self) -> float:
        total = self.cache_hits + self.cache_misses
        return self.cache_hits / total if total else 0.0
    
    def to_dict(self) -> dict[str, Any]:
        """Convert metrics to dictionary for serialization."""
        return {
            "lookups": {
                "hits": self.cache_hits,
                "misses": self.cache_misses,
                "hit_rate": self.hit_rate,
            },
            "writes": {
                "created": self.records_created,
                "replaced": self.records_replaced,
                "signals_attached": self.signals_attached,
            },
            "anchors": {
                "applied": self.anchor_updates_applied,
                "ignored": self.anchor_updates_ignored,
            },
        }
