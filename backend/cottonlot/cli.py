"""Management CLI.

Usage:
    python -m cottonlot.cli grade-table           # Print the premium/discount table
    python -m cottonlot.cli list-calculations     # Show saved calculations, newest first
    python -m cottonlot.cli report <id>           # Print the text report of a calculation
"""

import sys

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, selectinload

from cottonlot.config import settings
from cottonlot.models.batch import Batch
from cottonlot.models.calculation import Calculation
from cottonlot.services.grading import (
    COLOR_GRADES,
    LEAF_GRADES,
    STAPLE_LENGTHS,
    premium_discount,
)
from cottonlot.services.reports import render_text_report


def grade_table() -> str:
    """Premium/discount table as text, one block per color grade."""
    lines = []
    for color in COLOR_GRADES:
        lines.append(f"{color}")
        lines.append("leaf  " + "".join(f"{s:>8}" for s in STAPLE_LENGTHS))
        for leaf in LEAF_GRADES:
            values = "".join(
                f"{premium_discount(color, leaf, staple):>8.2f}" for staple in STAPLE_LENGTHS
            )
            lines.append(f"{leaf:<6}{values}")
        lines.append("")
    return "\n".join(lines)


def list_calculations(url: str | None = None):
    batch_count = (
        select(func.count(Batch.id))
        .where(Batch.calculation_id == Calculation.id)
        .correlate(Calculation)
        .scalar_subquery()
    )
    engine = create_engine(url or settings.database_url_sync)
    try:
        with Session(engine) as session:
            rows = session.execute(
                select(Calculation, batch_count).order_by(Calculation.created_at.desc())
            ).all()
            for calc, count in rows:
                print(f"  {calc.id}  {calc.created_at:%Y-%m-%d %H:%M}  {count:>3} batch(es)  {calc.title}")
    finally:
        engine.dispose()
    print(f"\n{len(rows)} calculation(s)")


def report(calc_id: str, url: str | None = None) -> int:
    engine = create_engine(url or settings.database_url_sync)
    try:
        with Session(engine) as session:
            calc = session.execute(
                select(Calculation)
                .where(Calculation.id == calc_id)
                .options(selectinload(Calculation.batches).selectinload(Batch.samples))
            ).scalar_one_or_none()
            if calc is None:
                print(f"Calculation not found: {calc_id}", file=sys.stderr)
                return 1
            print(render_text_report(calc), end="")
    finally:
        engine.dispose()
    return 0


def main(argv: list[str]) -> int:
    cmd = argv[1] if len(argv) > 1 else ""
    if cmd == "grade-table":
        print(grade_table())
    elif cmd == "list-calculations":
        list_calculations()
    elif cmd == "report" and len(argv) > 2:
        return report(argv[2])
    else:
        print("Usage: python -m cottonlot.cli [grade-table|list-calculations|report <id>]")
        return 2
    return 0


def _entrypoint():
    sys.exit(main(sys.argv))


if __name__ == "__main__":
    _entrypoint()
