"""Payload builders for calculation tests."""


def sample_payload(quantity=5, color_grade="SM", leaf_grade=1, staple_length=34, **extra) -> dict:
    return {
        "quantity": quantity,
        "color_grade": color_grade,
        "leaf_grade": leaf_grade,
        "staple_length": staple_length,
        **extra,
    }


def batch_payload(
    batch_code="123/45",
    year=2023,
    weight=10000,
    bales_count=50,
    samples_count=100,
    samples=None,
    **extra,
) -> dict:
    return {
        "year": year,
        "batch_code": batch_code,
        "weight": weight,
        "bales_count": bales_count,
        "samples_count": samples_count,
        "samples": [sample_payload()] if samples is None else samples,
        **extra,
    }


def calculation_payload(batches=None, market_quotation=80.0, **extra) -> dict:
    return {
        "title": "Test calculation",
        "market_quotation": market_quotation,
        "exchange_rate": 10.95,
        "batches": [batch_payload()] if batches is None else batches,
        **extra,
    }
