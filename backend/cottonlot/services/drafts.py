"""In-memory calculation drafts.

A ``CalculationDraft`` is the working copy a single user edits before it is
handed to the store.  Every batch and sample is tagged ``editing`` or
``confirmed``; only confirmed samples carry prices and only confirmed
entries count towards statistics.  Prices are computed at the moment a
sample is confirmed (and refreshed when its batch's weight or declared
sample count is re-confirmed), never continuously.

Lifecycle:  draft → saved  (no way back; the store has no update)

Save gate: at least one batch, no editing batches, no editing samples and no
batch without samples.
"""

import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime

from pydantic import ValidationError

from cottonlot.config import settings
from cottonlot.middleware.exceptions import (
    CapacityError,
    DraftStateError,
    FieldValidationError,
    PreconditionError,
    ResourceNotFoundError,
)
from cottonlot.schemas.calculation import (
    BatchFields,
    CalculationCreate,
    SampleFields,
    SampleQuantity,
)
from cottonlot.services.aggregation import (
    BatchStats,
    CalculationStats,
    aggregate_batch,
    aggregate_calculation,
)
from cottonlot.services.pricing import PricedSample, price_sample

logger = logging.getLogger(__name__)

BATCH_FIELDS = ("year", "batch_code", "weight", "bales_count", "samples_count")
SAMPLE_FIELDS = ("quantity", "color_grade", "leaf_grade", "staple_length")


class EntryState(str, enum.Enum):
    EDITING = "editing"
    CONFIRMED = "confirmed"


class DraftStatus(str, enum.Enum):
    DRAFT = "draft"
    SAVED = "saved"


@dataclass
class DraftSample:
    id: str
    quantity: int | None = None
    color_grade: str | None = None
    leaf_grade: int | None = None
    staple_length: int | None = None
    state: EntryState = EntryState.EDITING
    # Set on confirmation; stale while the sample is back in editing
    pricing: PricedSample | None = None

    @property
    def is_confirmed(self) -> bool:
        return self.state is EntryState.CONFIRMED


@dataclass
class DraftBatch:
    id: str
    year: int | None = None
    batch_code: str | None = None
    weight: float | None = None
    bales_count: int | None = None
    samples_count: int | None = None
    state: EntryState = EntryState.EDITING
    samples: list[DraftSample] = field(default_factory=list)

    @property
    def is_confirmed(self) -> bool:
        return self.state is EntryState.CONFIRMED

    @property
    def label(self) -> str:
        return f"{self.batch_code or 'new batch'} ({self.year})"

    @property
    def priced_samples(self) -> list[PricedSample]:
        return [s.pricing for s in self.samples if s.is_confirmed]

    @property
    def quantity_used(self) -> int:
        """Σ quantity over every sample, editing ones included."""
        return sum(s.quantity or 0 for s in self.samples)

    @property
    def is_complete(self) -> bool:
        confirmed = sum(s.quantity for s in self.samples if s.is_confirmed)
        return self.is_confirmed and bool(self.samples_count) and confirmed == self.samples_count


def _validate(model, data: dict):
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise FieldValidationError([
            {
                "field": " -> ".join(str(loc) for loc in err["loc"]) or "__root__",
                "message": err["msg"],
            }
            for err in exc.errors()
        ]) from None


def _merge(entry, names: tuple[str, ...], fields: dict) -> dict:
    unknown = set(fields) - set(names)
    if unknown:
        raise TypeError(f"Unknown fields: {', '.join(sorted(unknown))}")
    values = {name: getattr(entry, name) for name in names}
    values.update({k: v for k, v in fields.items() if v is not None})
    return values


class CalculationDraft:
    """Working state of one calculation before it is saved."""

    def __init__(
        self,
        *,
        title: str | None = None,
        market_quotation: float | None = None,
        quotation_date: date | None = None,
        exchange_rate: float | None = None,
    ):
        self.title = title
        self.market_quotation = (
            market_quotation if market_quotation is not None else settings.fallback_quotation
        )
        self.quotation_date = quotation_date
        self.exchange_rate = (
            exchange_rate if exchange_rate is not None else settings.fallback_exchange_rate
        )
        self.status = DraftStatus.DRAFT
        self.calculation_id: str | None = None
        self.batches: list[DraftBatch] = []

    # ── Lookup / guards ──────────────────────────────────────

    def _require_draft(self) -> None:
        if self.status is DraftStatus.SAVED:
            raise DraftStateError(
                f"Calculation {self.calculation_id} is already saved and cannot be changed"
            )

    def batch(self, batch_id: str) -> DraftBatch:
        for batch in self.batches:
            if batch.id == batch_id:
                return batch
        raise ResourceNotFoundError("Batch", batch_id)

    def sample(self, batch_id: str, sample_id: str) -> DraftSample:
        for sample in self.batch(batch_id).samples:
            if sample.id == sample_id:
                return sample
        raise ResourceNotFoundError("Sample", sample_id)

    # ── Market parameters ────────────────────────────────────

    def set_market(
        self,
        *,
        market_quotation: float | None = None,
        quotation_date: date | None = None,
        exchange_rate: float | None = None,
    ) -> None:
        """Change working market values.

        Samples already confirmed keep the quotation they were priced with
        until they are confirmed again.
        """
        self._require_draft()
        if market_quotation is not None:
            self.market_quotation = market_quotation
        if quotation_date is not None:
            self.quotation_date = quotation_date
        if exchange_rate is not None:
            self.exchange_rate = exchange_rate

    def apply_market_value(self, kind: str, market_value) -> None:
        """Overwrite a working value with a fetcher result (live or fallback)."""
        if kind == "quotation":
            self.set_market(market_quotation=market_value.value)
        elif kind == "exchange_rate":
            self.set_market(exchange_rate=market_value.value)
        else:
            raise ValueError(f"Unknown market value kind: {kind}")

    # ── Batches ──────────────────────────────────────────────

    def add_batch(self, *, batch_id: str | None = None, **fields) -> DraftBatch:
        """Append a new batch in editing state."""
        self._require_draft()
        values = _merge(DraftBatch(id=""), BATCH_FIELDS, fields)
        if values["year"] is None:
            values["year"] = date.today().year
        batch = DraftBatch(id=batch_id or str(uuid.uuid4()), **values)
        self.batches.append(batch)
        return batch

    def confirm_batch(self, batch_id: str, **fields) -> DraftBatch:
        """Validate and confirm a batch, optionally applying new field values.

        Raises FieldValidationError or CapacityError; on failure the batch
        keeps its previous values and state.
        """
        self._require_draft()
        batch = self.batch(batch_id)
        validated = _validate(BatchFields, _merge(batch, BATCH_FIELDS, fields))

        used = batch.quantity_used
        if used > validated.samples_count:
            raise CapacityError(
                f"Batch {validated.batch_code} already holds {used} samples; "
                f"the declared sample count cannot be {validated.samples_count}",
                available=validated.samples_count,
                requested=used,
            )

        reprice = (validated.weight, validated.samples_count) != (batch.weight, batch.samples_count)
        for name in BATCH_FIELDS:
            setattr(batch, name, getattr(validated, name))
        batch.state = EntryState.CONFIRMED

        if reprice:
            for sample in batch.samples:
                if sample.is_confirmed:
                    sample.pricing = self._price(batch, sample, sample.pricing.market_quotation)
        return batch

    def edit_batch(self, batch_id: str) -> DraftBatch:
        self._require_draft()
        batch = self.batch(batch_id)
        batch.state = EntryState.EDITING
        return batch

    def remove_batch(self, batch_id: str) -> None:
        self._require_draft()
        self.batches.remove(self.batch(batch_id))

    # ── Samples ──────────────────────────────────────────────

    def max_available(self, batch_id: str, sample_id: str | None = None) -> int:
        """Quantity still free in a batch, not counting ``sample_id`` itself."""
        batch = self.batch(batch_id)
        others = sum(s.quantity or 0 for s in batch.samples if s.id != sample_id)
        return max((batch.samples_count or 0) - others, 0)

    def add_sample(self, batch_id: str, *, sample_id: str | None = None, **fields) -> DraftSample:
        """Append a new sample in editing state to a confirmed batch."""
        self._require_draft()
        batch = self.batch(batch_id)
        if not batch.is_confirmed:
            raise DraftStateError(f"Confirm batch {batch.label} before adding samples")
        if batch.quantity_used >= batch.samples_count:
            raise CapacityError(
                f"Declared sample count of batch {batch.label} is already reached",
                available=0,
            )
        values = _merge(DraftSample(id=""), SAMPLE_FIELDS, fields)
        if values["quantity"] is not None:
            quantity = _validate(SampleQuantity, {"quantity": values["quantity"]}).quantity
            available = self.max_available(batch_id)
            if quantity > available:
                raise CapacityError(
                    f"Cannot add sample: only {available} of {batch.samples_count} "
                    f"samples are available in batch {batch.label}",
                    available=available,
                    requested=quantity,
                )
            values["quantity"] = quantity
        sample = DraftSample(id=sample_id or str(uuid.uuid4()), **values)
        batch.samples.append(sample)
        return sample

    def confirm_sample(self, batch_id: str, sample_id: str, **fields) -> DraftSample:
        """Validate, price and confirm a sample.

        Raises FieldValidationError, CapacityError or DraftStateError; on
        failure the sample stays editing with its previous values.
        """
        self._require_draft()
        batch = self.batch(batch_id)
        sample = self.sample(batch_id, sample_id)
        if not batch.is_confirmed:
            raise DraftStateError(f"Confirm batch {batch.label} before confirming its samples")

        validated = _validate(SampleFields, _merge(sample, SAMPLE_FIELDS, fields))
        available = self.max_available(batch_id, sample_id)
        if validated.quantity > available:
            raise CapacityError(
                f"Cannot confirm sample: only {available} of {batch.samples_count} "
                f"samples are available in batch {batch.label}",
                available=available,
                requested=validated.quantity,
            )

        sample.quantity = validated.quantity
        sample.color_grade = validated.color_grade.value
        sample.leaf_grade = validated.leaf_grade
        sample.staple_length = validated.staple_length
        sample.pricing = self._price(batch, sample, self.market_quotation)
        sample.state = EntryState.CONFIRMED
        return sample

    def edit_sample(self, batch_id: str, sample_id: str) -> DraftSample:
        self._require_draft()
        sample = self.sample(batch_id, sample_id)
        sample.state = EntryState.EDITING
        return sample

    def remove_sample(self, batch_id: str, sample_id: str) -> None:
        self._require_draft()
        batch = self.batch(batch_id)
        batch.samples.remove(self.sample(batch_id, sample_id))

    @staticmethod
    def _price(batch: DraftBatch, sample: DraftSample, market_quotation: float) -> PricedSample:
        return price_sample(
            sample.quantity,
            sample.color_grade,
            sample.leaf_grade,
            sample.staple_length,
            batch_weight=batch.weight,
            samples_count=batch.samples_count,
            market_quotation=market_quotation,
        )

    # ── Statistics ───────────────────────────────────────────

    def batch_stats(self, batch_id: str) -> BatchStats:
        return aggregate_batch(self.batch(batch_id))

    def stats(self) -> CalculationStats:
        return aggregate_calculation(b for b in self.batches if b.is_confirmed)

    # ── Save gate ────────────────────────────────────────────

    def save_problems(self) -> tuple[list[str], list[str]]:
        """Reasons the draft cannot be saved, and the batches at fault."""
        problems: list[str] = []
        offending: list[str] = []

        def note(batches: list[DraftBatch], message: str) -> None:
            if batches:
                labels = [b.label for b in batches]
                problems.append(f"{message}: {', '.join(labels)}")
                offending.extend(label for label in labels if label not in offending)

        if not self.batches:
            problems.append("Add at least one batch before saving")
        note(
            [b for b in self.batches if not b.is_confirmed],
            "Confirm all batches being edited",
        )
        note(
            [b for b in self.batches if any(not s.is_confirmed for s in b.samples)],
            "Confirm all samples being edited in batches",
        )
        note(
            [b for b in self.batches if not b.samples],
            "Every batch needs at least one sample; batches without samples",
        )
        return problems, offending

    def check_save_preconditions(self) -> None:
        self._require_draft()
        problems, offending = self.save_problems()
        if problems:
            raise PreconditionError(problems, offending)

    def resolved_title(self) -> str:
        return self.title or f"Calculation of {datetime.now():%Y-%m-%d %H:%M:%S}"

    def mark_saved(self, calculation_id: str) -> None:
        self._require_draft()
        self.calculation_id = calculation_id
        self.status = DraftStatus.SAVED
        logger.info("Draft saved as calculation %s", calculation_id)


def draft_from_payload(body: CalculationCreate) -> CalculationDraft:
    """Rebuild a draft from an API payload, re-validating and re-pricing.

    Entries marked ``editing`` stay editing so the save gate sees them.  An
    editing batch without samples may hold incomplete values.
    """
    draft = CalculationDraft(
        title=body.title,
        market_quotation=body.market_quotation,
        quotation_date=body.quotation_date,
        exchange_rate=body.exchange_rate,
    )
    for i, batch_in in enumerate(body.batches):
        location = f"batches -> {i}"
        batch = draft.add_batch(**batch_in.model_dump(include=set(BATCH_FIELDS)))
        try:
            draft.confirm_batch(batch.id)
        except FieldValidationError as exc:
            if batch_in.state == EntryState.EDITING.value and not batch_in.samples:
                continue
            raise exc.prefixed(location) from None

        for j, sample_in in enumerate(batch_in.samples):
            try:
                sample = draft.add_sample(
                    batch.id, **sample_in.model_dump(include=set(SAMPLE_FIELDS))
                )
                if sample_in.state == EntryState.CONFIRMED.value:
                    draft.confirm_sample(batch.id, sample.id)
            except FieldValidationError as exc:
                raise exc.prefixed(f"{location} -> samples -> {j}") from None

        if batch_in.state == EntryState.EDITING.value:
            draft.edit_batch(batch.id)
    return draft
