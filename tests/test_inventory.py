import asyncio

import pytest
from prometheus_client import REGISTRY

from services.product_service.models import Product
from services.product_service.service import InventoryLedger
from shared.errors import InsufficientStock, NotFound


def released_units() -> float:
    return REGISTRY.get_sample_value("ecomm_stock_released_units_total") or 0.0


class TestReserve:
    async def test_reserve_decrements_stock(self, db, make_product, stock_of):
        pid = await make_product(stock=5)

        await InventoryLedger.reserve(db, pid, 3)

        assert await stock_of(pid) == 2

    async def test_reserve_whole_stock_reaches_zero(self, db, make_product, stock_of):
        pid = await make_product(stock=4)

        await InventoryLedger.reserve(db, pid, 4)

        assert await stock_of(pid) == 0

    async def test_reserve_more_than_stock_is_rejected(self, db, make_product, stock_of):
        pid = await make_product(stock=2)

        with pytest.raises(InsufficientStock) as exc:
            await InventoryLedger.reserve(db, pid, 3)

        assert exc.value.product_id == pid
        assert await stock_of(pid) == 2

    async def test_reserve_inactive_product_is_rejected(self, db, make_product, stock_of):
        pid = await make_product(stock=5, is_active=False)

        with pytest.raises(InsufficientStock):
            await InventoryLedger.reserve(db, pid, 1)

        assert await stock_of(pid) == 5

    async def test_reserve_unknown_product_is_rejected(self, db):
        with pytest.raises(InsufficientStock):
            await InventoryLedger.reserve(db, 999, 1)


class TestRelease:
    async def test_release_increments_stock(self, db, make_product, stock_of):
        pid = await make_product(stock=2)

        await InventoryLedger.release(db, pid, 3)

        assert await stock_of(pid) == 5

    async def test_release_is_not_capped(self, db, make_product, stock_of):
        pid = await make_product(stock=5)

        await InventoryLedger.release(db, pid, 10)

        assert await stock_of(pid) == 15

    async def test_release_unknown_product(self, db):
        with pytest.raises(NotFound):
            await InventoryLedger.release(db, 999, 1)


async def test_stock_never_goes_negative(db, make_product, stock_of):
    pid = await make_product(stock=5)
    operations = [("reserve", 3), ("reserve", 3), ("release", 1), ("reserve", 3), ("reserve", 1)]

    for op, quantity in operations:
        try:
            await getattr(InventoryLedger, op)(db, pid, quantity)
        except InsufficientStock:
            pass
        assert await stock_of(pid) >= 0

    # 5 - 3 (ok) - 3 (rejected) + 1 - 3 (ok) - 1 (rejected at 0)
    assert await stock_of(pid) == 0
    assert await InventoryLedger.available(db, pid) == 0


class TestProductDerivedFields:
    def test_discounted_price(self):
        product = Product(price=200.0, discount=25, stock=1, low_stock_threshold=10)
        assert product.discounted_price == 150.0

    def test_no_discount_keeps_price(self):
        product = Product(price=200.0, discount=0, stock=1, low_stock_threshold=10)
        assert product.discounted_price == 200.0

    @pytest.mark.parametrize(
        "stock, expected",
        [(0, "out-of-stock"), (10, "low-stock"), (11, "in-stock")],
    )
    def test_stock_status(self, stock, expected):
        product = Product(price=1.0, discount=0, stock=stock, low_stock_threshold=10)
        assert product.stock_status == expected


class TestConcurrentReservations:
    async def test_only_fitting_reservations_succeed(self, call, make_product, stock_of):
        pid = await make_product(stock=5)

        async def attempt():
            try:
                await call(InventoryLedger.reserve, pid, 3)
                return "ok"
            except InsufficientStock:
                return "rejected"

        outcomes = await asyncio.gather(*(attempt() for _ in range(3)))

        assert sorted(outcomes) == ["ok", "rejected", "rejected"]
        assert await stock_of(pid) == 2

    async def test_exact_fit_drains_to_zero(self, call, make_product, stock_of):
        pid = await make_product(stock=4)

        async def attempt():
            try:
                await call(InventoryLedger.reserve, pid, 1)
                return True
            except InsufficientStock:
                return False

        outcomes = await asyncio.gather(*(attempt() for _ in range(6)))

        assert outcomes.count(True) == 4
        assert await stock_of(pid) == 0


class TestReleaseMetric:
    async def test_committed_release_is_counted(self, db, make_product):
        pid = await make_product(stock=1)
        before = released_units()

        await InventoryLedger.release(db, pid, 2)

        assert released_units() == before + 2

    async def test_deferred_release_is_not_counted(self, db, make_product, stock_of):
        pid = await make_product(stock=1)
        before = released_units()

        await InventoryLedger.release(db, pid, 2, commit=False)
        await db.rollback()

        assert released_units() == before
        assert await stock_of(pid) == 1
