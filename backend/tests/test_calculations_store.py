"""Calculation store tests."""

from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from cottonlot.middleware.exceptions import (
    PersistenceError,
    PreconditionError,
    ResourceNotFoundError,
)
from cottonlot.models.batch import Batch
from cottonlot.models.calculation import Calculation
from cottonlot.models.sample import Sample
from cottonlot.services.calculations import (
    count_calculations,
    get_calculation,
    list_calculations,
    save_calculation,
    save_draft,
)
from cottonlot.services.drafts import CalculationDraft, DraftStatus


def _ready_draft(title="Store test", batches=1, quotation=80.0) -> CalculationDraft:
    draft = CalculationDraft(title=title, market_quotation=quotation, exchange_rate=10.95)
    for n in range(batches):
        batch = draft.add_batch(
            year=2023, batch_code=f"{n + 1:03d}/24", weight=10000, bales_count=50, samples_count=100
        )
        draft.confirm_batch(batch.id)
        for quantity, color in ((5, "SM"), (10, "MID")):
            sample = draft.add_sample(
                batch.id, quantity=quantity, color_grade=color, leaf_grade=1, staple_length=34
            )
            draft.confirm_sample(batch.id, sample.id)
    return draft


@pytest.mark.store
@pytest.mark.asyncio
class TestSaveCalculation:

    async def test_save_and_load_round_trip(self, db_session: AsyncSession):
        draft = _ready_draft(batches=2)
        calc_id = await save_draft(db_session, draft)

        assert draft.status is DraftStatus.SAVED
        assert draft.calculation_id == calc_id

        calc = await get_calculation(db_session, calc_id)
        assert calc.title == "Store test"
        assert calc.market_quotation == 80.0
        assert calc.exchange_rate == 10.95
        assert [b.batch_code for b in calc.batches] == ["001/24", "002/24"]

        first = calc.batches[0]
        assert [s.color_grade for s in first.samples] == ["SM", "MID"]
        sm = first.samples[0]
        assert sm.weight == pytest.approx(500.0)
        assert sm.premium_discount == pytest.approx(4.05)
        assert sm.unit_price == pytest.approx(1728.12870115, abs=1e-6)
        assert sm.amount == pytest.approx(864.064350575, abs=1e-6)
        assert sm.market_quotation == 80.0

    async def test_each_sample_keeps_its_quotation(self, db_session: AsyncSession):
        draft = _ready_draft(quotation=80.0)
        batch = draft.batches[0]
        draft.set_market(market_quotation=90.0)
        sample = draft.add_sample(
            batch.id, quantity=1, color_grade="SLM", leaf_grade=2, staple_length=36
        )
        draft.confirm_sample(batch.id, sample.id)

        calc = await get_calculation(db_session, await save_draft(db_session, draft))
        assert calc.market_quotation == 90.0
        assert [s.market_quotation for s in calc.batches[0].samples] == [80.0, 80.0, 90.0]

    async def test_gate_blocks_save(self, db_session: AsyncSession):
        draft = _ready_draft()
        draft.add_batch(year=2023, batch_code="777/77", weight=1, bales_count=1, samples_count=1)

        with pytest.raises(PreconditionError) as exc_info:
            await save_draft(db_session, draft)
        assert "777/77 (2023)" in exc_info.value.batches
        assert draft.status is DraftStatus.DRAFT
        assert await count_calculations(db_session) == 0

    async def test_failed_write_leaves_nothing(self, db_session: AsyncSession, monkeypatch):
        draft = _ready_draft()
        real_flush = db_session.flush
        calls = {"n": 0}

        async def failing_flush(*args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 2:
                raise OperationalError("INSERT INTO batches", {}, Exception("disk full"))
            return await real_flush(*args, **kwargs)

        monkeypatch.setattr(db_session, "flush", failing_flush)
        with pytest.raises(PersistenceError):
            await save_draft(db_session, draft)
        monkeypatch.undo()

        assert draft.status is DraftStatus.DRAFT
        for model in (Calculation, Batch, Sample):
            count = (await db_session.execute(select(func.count()).select_from(model))).scalar_one()
            assert count == 0

    async def test_save_calculation_accepts_explicit_fields(self, db_session: AsyncSession):
        created = datetime(2024, 3, 1, 12, 0, 0)
        calc_id = await save_calculation(
            db_session,
            title="Explicit",
            market_quotation=77.5,
            quotation_date=date(2024, 2, 29),
            batches=[],
            created_at=created,
        )
        calc = await get_calculation(db_session, calc_id)
        assert calc.created_at == created
        assert calc.quotation_date == date(2024, 2, 29)
        assert calc.exchange_rate is None
        assert calc.batches == []


@pytest.mark.store
@pytest.mark.asyncio
class TestReadCalculations:

    async def test_unknown_id(self, db_session: AsyncSession):
        with pytest.raises(ResourceNotFoundError):
            await get_calculation(db_session, "does-not-exist")

    async def test_list_newest_first_with_batch_count(self, db_session: AsyncSession):
        base = datetime(2024, 1, 1)
        for n, batches in enumerate((1, 3, 2)):
            draft = _ready_draft(title=f"calc {n}", batches=batches)
            await save_calculation(
                db_session,
                title=draft.resolved_title(),
                market_quotation=draft.market_quotation,
                batches=draft.batches,
                created_at=base + timedelta(days=n),
            )

        items = await list_calculations(db_session)
        assert [i.title for i in items] == ["calc 2", "calc 1", "calc 0"]
        assert [i.batch_count for i in items] == [2, 3, 1]
        assert await count_calculations(db_session) == 3

        page = await list_calculations(db_session, limit=1, offset=1)
        assert [i.title for i in page] == ["calc 1"]

    async def test_empty_list(self, db_session: AsyncSession):
        assert await list_calculations(db_session) == []
        assert await count_calculations(db_session) == 0
