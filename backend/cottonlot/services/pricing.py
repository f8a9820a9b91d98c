"""Per-sample pricing.

A sample's share of the batch weight is priced at the market quotation plus
its grade premium/discount, converted from US cents per pound to the
per-tonne basis, less the fixed deduction rate and the fixed per-tonne
charge.  No rounding is applied here; renderers round for display.
"""

from dataclasses import dataclass

from cottonlot.services.grading import premium_discount

LB_TO_TONNE_FACTOR = 22.0462  # cents/lb -> currency units per tonne
DEDUCTION_RATE = 0.035
FIXED_CHARGE = 60


@dataclass(frozen=True)
class PricedSample:
    """Derived values for one confirmed sample."""

    quantity: int
    color_grade: str
    leaf_grade: int
    staple_length: int
    market_quotation: float
    weight: float
    premium_discount: float
    unit_price: float
    amount: float


def sample_weight(batch_weight: float, quantity: int, samples_count: int) -> float:
    if samples_count <= 0:
        raise ValueError("samples_count must be positive to derive sample weight")
    return (batch_weight * quantity) / samples_count


def unit_price(market_quotation: float, premium: float) -> float:
    return (market_quotation + premium) * LB_TO_TONNE_FACTOR * (1 - DEDUCTION_RATE) - FIXED_CHARGE


def price_sample(
    quantity: int,
    color_grade: str,
    leaf_grade: int,
    staple_length: int,
    *,
    batch_weight: float,
    samples_count: int,
    market_quotation: float,
) -> PricedSample:
    """Price one sample in the context of its batch.

    Callers validate grades and capacity first; this only computes.
    """
    weight = sample_weight(batch_weight, quantity, samples_count)
    premium = premium_discount(color_grade, leaf_grade, staple_length)
    price = unit_price(market_quotation, premium)
    return PricedSample(
        quantity=quantity,
        color_grade=str(getattr(color_grade, "value", color_grade)),
        leaf_grade=int(leaf_grade),
        staple_length=int(staple_length),
        market_quotation=market_quotation,
        weight=weight,
        premium_discount=premium,
        unit_price=price,
        amount=(price * weight) / 1000,
    )
