"""Batch and calculation statistics.

Both aggregators read ``priced_samples`` from each batch: draft batches
expose only their confirmed samples there, persisted batches expose all of
theirs.  Averages are 0.0 when their denominator is zero so an empty batch
never propagates NaN into reports.
"""

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class BatchStats:
    total_samples: int
    total_weight: float
    total_amount: float
    avg_premium_discount: float
    avg_price: float


@dataclass(frozen=True)
class CalculationStats:
    total_batches: int
    total_weight: float
    total_bales: int
    total_samples: int
    total_amount: float
    avg_price: float


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def aggregate_samples(samples: Iterable) -> BatchStats:
    samples = list(samples)
    total_samples = sum(s.quantity for s in samples)
    total_weight = sum(s.weight for s in samples)
    return BatchStats(
        total_samples=total_samples,
        total_weight=total_weight,
        total_amount=sum(s.amount for s in samples),
        avg_premium_discount=_ratio(
            sum(s.premium_discount * s.quantity for s in samples), total_samples
        ),
        avg_price=_ratio(sum(s.unit_price * s.weight for s in samples), total_weight),
    )


def aggregate_batch(batch) -> BatchStats:
    return aggregate_samples(batch.priced_samples)


def aggregate_calculation(batches: Iterable) -> CalculationStats:
    """Totals across every batch of a calculation.

    Declared weight and bale counts come straight off the batch records;
    sample totals and the weight-weighted price flatten all samples.
    """
    batches = list(batches)
    samples = [s for batch in batches for s in batch.priced_samples]
    sample_weight = sum(s.weight for s in samples)
    return CalculationStats(
        total_batches=len(batches),
        total_weight=sum(b.weight for b in batches),
        total_bales=sum(b.bales_count for b in batches),
        total_samples=sum(s.quantity for s in samples),
        total_amount=sum(s.amount for s in samples),
        avg_price=_ratio(sum(s.unit_price * s.weight for s in samples), sample_weight),
    )
