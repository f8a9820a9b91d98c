"""Aggregate model imports for Alembic auto-detection."""

from cottonlot.models.calculation import Calculation  # noqa: F401
from cottonlot.models.batch import Batch  # noqa: F401
from cottonlot.models.sample import Sample  # noqa: F401
