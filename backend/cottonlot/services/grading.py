"""Grade premium/discount reference table.

Maps (color grade, leaf grade, staple length) to a premium or discount on the
A Index, stored in hundredths of a US cent per pound.  The table is a fixed
business reference and must cover every combination of the three grade
domains; ``_check_complete()`` runs at import so a gap fails at startup
rather than on the first lookup.
"""

import enum


class ColorGrade(str, enum.Enum):
    SM = "SM"
    MID = "MID"
    SLM = "SLM"


COLOR_GRADES: tuple[str, ...] = tuple(g.value for g in ColorGrade)
LEAF_GRADES: tuple[int, ...] = (1, 2, 3, 4, 5, 6, 7)
STAPLE_LENGTHS: tuple[int, ...] = (32, 33, 34, 35, 36, 37)

# color -> leaf -> values for STAPLE_LENGTHS, in order
_TABLE_ROWS: dict[str, dict[int, tuple[int, ...]]] = {
    "SM": {
        1: (70, 370, 405, 470, 535, 580),
        2: (0, 300, 335, 400, 465, 510),
        3: (-120, 180, 215, 280, 345, 390),
        4: (-335, -35, 0, 65, 130, 175),
        5: (-700, -400, -365, -300, -235, -190),
        6: (-800, -500, -465, -400, -335, -290),
        7: (-800, -500, -465, -400, -335, -290),
    },
    "MID": {
        1: (-30, 270, 305, 370, 435, 480),
        2: (-180, 120, 155, 220, 285, 330),
        3: (-400, -100, -65, 0, 65, 110),
        4: (-420, -120, -85, -20, 45, 90),
        5: (-730, -430, -395, -330, -265, -220),
        6: (-850, -550, -515, -450, -385, -340),
        7: (-850, -550, -515, -450, -385, -340),
    },
    "SLM": {
        1: (-320, -20, 15, 80, 145, 190),
        2: (-340, -40, -5, 60, 125, 170),
        3: (-360, -60, -25, 40, 105, 150),
        4: (-400, -100, -65, 0, 65, 110),
        5: (-700, -400, -365, -300, -235, -190),
        6: (-950, -650, -615, -550, -485, -440),
        7: (-950, -650, -615, -550, -485, -440),
    },
}

PREMIUM_DISCOUNT_TABLE: dict[tuple[str, int, int], int] = {
    (color, leaf, staple): value
    for color, leaves in _TABLE_ROWS.items()
    for leaf, values in leaves.items()
    for staple, value in zip(STAPLE_LENGTHS, values)
}


def _check_complete() -> None:
    expected = {
        (color, leaf, staple)
        for color in COLOR_GRADES
        for leaf in LEAF_GRADES
        for staple in STAPLE_LENGTHS
    }
    for leaves in _TABLE_ROWS.values():
        for values in leaves.values():
            if len(values) != len(STAPLE_LENGTHS):
                raise RuntimeError("Grade premium table row has the wrong width")
    missing = expected - PREMIUM_DISCOUNT_TABLE.keys()
    extra = PREMIUM_DISCOUNT_TABLE.keys() - expected
    if missing or extra:
        raise RuntimeError(
            f"Grade premium table is inconsistent: "
            f"{len(missing)} missing, {len(extra)} unexpected entries"
        )


_check_complete()


def premium_discount_hundredths(color_grade, leaf_grade: int, staple_length: int) -> int:
    """Raw table value for a grade combination.

    Raises ``LookupError`` for a combination outside the grade domains.
    """
    color = color_grade.value if isinstance(color_grade, ColorGrade) else color_grade
    # Whole-number grades only; 1.9 is not leaf grade 1
    if type(leaf_grade) is int and type(staple_length) is int:
        try:
            return PREMIUM_DISCOUNT_TABLE[(color, leaf_grade, staple_length)]
        except (KeyError, TypeError):
            pass
    raise LookupError(
        f"No premium/discount for grade {color_grade}/{leaf_grade}/{staple_length}"
    )


def premium_discount(color_grade, leaf_grade: int, staple_length: int) -> float:
    """Premium (positive) or discount (negative) in US cents per pound."""
    return premium_discount_hundredths(color_grade, leaf_grade, staple_length) / 100
