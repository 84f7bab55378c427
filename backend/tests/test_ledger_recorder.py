"""Tests for the movement ledger recorder."""

import pytest
from decimal import Decimal

from foodbank.models.movement import MovementDetail, MovementHeader
from foodbank.services.allocation import DeliveredDetail, LedgerRecorder, LedgerStatus, ProductRecord


@pytest.fixture
def delivered(units, make_product):
    rice = make_product("Rice", unit=units["kg"])
    beans = make_product("Beans")
    return [
        DeliveredDetail(ProductRecord(rice.id, "Rice", units["kg"].id), Decimal("2.5")),
        DeliveredDetail(ProductRecord(beans.id, "Beans", None), Decimal("4")),
    ]


class TestLedgerRecorder:

    @pytest.mark.asyncio
    async def test_records_header_and_details(
        self, store, db_session, admin_user, beneficiary, delivered, units,
    ):
        result = await LedgerRecorder(store).record(
            actor_id=admin_user.id,
            recipient_id=beneficiary.id,
            delivered=delivered,
            note="Request approved - rice (6.5 kg)",
            detail_note="Delivery for approved request - rice",
        )

        assert result.status is LedgerStatus.RECORDED
        assert result.complete
        assert result.details_written == 2

        header = db_session.get(MovementHeader, result.header_id)
        assert header.actor_id == admin_user.id
        assert header.recipient_id == beneficiary.id
        assert header.status == "completed"
        assert header.note == "Request approved - rice (6.5 kg)"

        details = header.details
        assert [d.quantity for d in details] == [Decimal("2.5"), Decimal("4")]
        assert {d.transaction_kind for d in details} == {"egress"}
        assert {d.user_role for d in details} == {"beneficiary"}
        assert [d.unit_id for d in details] == [units["kg"].id, None]
        assert details[0].note == "Delivery for approved request - rice"

    @pytest.mark.asyncio
    async def test_nothing_delivered_writes_nothing(self, store, admin_user, beneficiary, count_rows):
        result = await LedgerRecorder(store).record(admin_user.id, beneficiary.id, [])

        assert result.status is LedgerStatus.SKIPPED
        assert result.header_id is None
        assert count_rows(MovementHeader) == 0

    @pytest.mark.asyncio
    async def test_zero_quantities_are_not_recorded(self, store, admin_user, beneficiary, delivered, count_rows):
        zeroed = [DeliveredDetail(d.product, Decimal("0")) for d in delivered]

        result = await LedgerRecorder(store).record(admin_user.id, beneficiary.id, zeroed)

        assert result.status is LedgerStatus.SKIPPED
        assert count_rows(MovementHeader) == 0
        assert count_rows(MovementDetail) == 0

    @pytest.mark.asyncio
    async def test_header_failure_writes_no_details(
        self, failing_store, admin_user, beneficiary, delivered, count_rows,
    ):
        store = failing_store(fail_inserts={"movement_headers"})

        result = await LedgerRecorder(store).record(admin_user.id, beneficiary.id, delivered)

        assert result.status is LedgerStatus.FAILED
        assert not result.complete
        assert count_rows(MovementDetail) == 0

    @pytest.mark.asyncio
    async def test_detail_failure_keeps_header_and_other_details(
        self, failing_store, db_session, admin_user, beneficiary, delivered,
    ):
        beans_id = delivered[1].product.id
        store = failing_store(fail_inserts={("movement_details", "product_id", beans_id)})

        result = await LedgerRecorder(store).record(admin_user.id, beneficiary.id, delivered)

        assert result.status is LedgerStatus.RECORDED
        assert result.details_written == 1
        assert result.details_failed == 1
        assert not result.complete
        header = db_session.get(MovementHeader, result.header_id)
        assert [d.product_id for d in header.details] == [delivered[0].product.id]
