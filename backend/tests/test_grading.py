"""Grade premium/discount table tests."""

import pytest

from cottonlot.services.grading import (
    COLOR_GRADES,
    LEAF_GRADES,
    PREMIUM_DISCOUNT_TABLE,
    STAPLE_LENGTHS,
    ColorGrade,
    premium_discount,
    premium_discount_hundredths,
)


@pytest.mark.unit
class TestGradeTable:

    def test_table_covers_every_combination(self):
        assert len(PREMIUM_DISCOUNT_TABLE) == len(COLOR_GRADES) * len(LEAF_GRADES) * len(STAPLE_LENGTHS)
        assert len(PREMIUM_DISCOUNT_TABLE) == 126
        for color in COLOR_GRADES:
            for leaf in LEAF_GRADES:
                for staple in STAPLE_LENGTHS:
                    assert (color, leaf, staple) in PREMIUM_DISCOUNT_TABLE

    @pytest.mark.parametrize(
        "grade, expected",
        [
            (("SM", 1, 34), 405),
            (("SM", 2, 32), 0),
            (("MID", 3, 35), 0),
            (("MID", 7, 37), -340),
            (("SLM", 1, 32), -320),
            (("SLM", 6, 33), -650),
        ],
    )
    def test_known_values(self, grade, expected):
        assert premium_discount_hundredths(*grade) == expected

    def test_premium_is_hundredths_of_table_value(self):
        assert premium_discount("SM", 1, 34) == pytest.approx(4.05)
        assert premium_discount("SLM", 5, 32) == pytest.approx(-7.0)

    def test_accepts_color_enum(self):
        assert premium_discount(ColorGrade.MID, 1, 37) == premium_discount("MID", 1, 37)

    def test_leaf_six_and_seven_share_values(self):
        for color in COLOR_GRADES:
            for staple in STAPLE_LENGTHS:
                assert PREMIUM_DISCOUNT_TABLE[(color, 6, staple)] == PREMIUM_DISCOUNT_TABLE[(color, 7, staple)]

    @pytest.mark.parametrize("grade", [("GM", 1, 34), ("SM", 8, 34), ("SM", 1, 31), ("SM", None, 34)])
    def test_unknown_combination_raises(self, grade):
        with pytest.raises(LookupError):
            premium_discount(*grade)

    @pytest.mark.parametrize("grade", [("SM", 1.9, 34.7), ("SM", 1.0, 34), ("SM", 1, "34")])
    def test_non_integer_grades_are_not_truncated(self, grade):
        with pytest.raises(LookupError):
            premium_discount(*grade)
