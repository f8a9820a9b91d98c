"""Plain-text calculation report.

Works on anything shaped like a persisted calculation: ``title``,
``created_at``, market fields and ``batches`` whose ``priced_samples`` hold
the derived values.  Numbers are rounded to two decimals here and nowhere
earlier.
"""

from cottonlot.services.aggregation import aggregate_batch, aggregate_calculation

SAMPLE_COLUMNS = (
    ("Qty", 7),
    ("Color", 7),
    ("Leaf", 6),
    ("Staple", 8),
    ("Weight (kg)", 12),
    ("Prem/Disc", 10),
    ("Unit price", 12),
    ("Amount", 0),
)


def _row(values) -> str:
    cells = [
        str(value).ljust(width) if width else str(value)
        for value, (_, width) in zip(values, SAMPLE_COLUMNS)
    ]
    return " | ".join(cells).rstrip()


def render_text_report(calc) -> str:
    lines: list[str] = [
        "COTTON BATCH CALCULATION",
        "========================",
        "",
        f"Title: {calc.title}",
        f"Created: {calc.created_at:%Y-%m-%d %H:%M:%S}",
    ]
    if calc.quotation_date:
        lines.append(f"Quotation date: {calc.quotation_date:%Y-%m-%d}")
    lines.append(f"A Index quotation: {calc.market_quotation:.2f} US cents/lb")
    if calc.exchange_rate:
        lines.append(f"Exchange rate: {calc.exchange_rate:.2f} per USD")

    totals = aggregate_calculation(calc.batches)
    lines += [
        "",
        "OVERALL STATISTICS",
        "------------------",
        f"Batches: {totals.total_batches}",
        f"Total weight: {totals.total_weight:,.2f} kg",
        f"Total bales: {totals.total_bales:,}",
        f"Total samples: {totals.total_samples:,}",
        f"Total amount: {totals.total_amount:,.2f}",
        f"Average price: {totals.avg_price:,.2f}",
        "",
    ]

    for index, batch in enumerate(calc.batches):
        lines += [
            f"BATCH {batch.batch_code} ({batch.year})",
            "-" * 24,
            f"Weight: {batch.weight:,.2f} kg",
            f"Bales: {batch.bales_count}",
            f"Declared samples: {batch.samples_count}",
            "",
        ]
        samples = list(batch.priced_samples)
        if samples:
            lines.append("Samples:")
            lines.append(_row(name for name, _ in SAMPLE_COLUMNS))
            lines.append("-+-".join("-" * max(width, len(name)) for name, width in SAMPLE_COLUMNS))
            for s in samples:
                lines.append(_row((
                    s.quantity,
                    s.color_grade,
                    s.leaf_grade,
                    s.staple_length,
                    f"{s.weight:.2f}",
                    f"{s.premium_discount:.2f}",
                    f"{s.unit_price:.2f}",
                    f"{s.amount:.2f}",
                )))
            stats = aggregate_batch(batch)
            lines += [
                "",
                "Batch totals:",
                f"Sample weight: {stats.total_weight:,.2f} kg",
                f"Average premium/discount: {stats.avg_premium_discount:.2f}",
                f"Average price: {stats.avg_price:,.2f}",
                f"Amount: {stats.total_amount:,.2f}",
            ]
        else:
            lines.append("No samples")

        if index < len(calc.batches) - 1:
            lines += ["", "=" * 80, ""]

    return "\n".join(lines) + "\n"
