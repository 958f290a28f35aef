"""Sale ledger: atomic recording and the sales-with-items read model."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from posledger.core.errors import InsufficientStock, StorageUnavailable, ValidationError
from posledger.v1_0.entities import SaleDetailDTO
from posledger.v1_0.schemas import ProductUpdate, SaleItemInput
from tests.factories import line, widget_payload


async def _stock(product_service, session_factory, product_id: int) -> int:
    async with session_factory() as fresh:
        return (await product_service.get(product_id, fresh)).stock


async def _counts(sale_repository, sale_item_repository, session_factory) -> tuple[int, int]:
    async with session_factory() as fresh:
        return await sale_repository.count(fresh), await sale_item_repository.count(fresh)


class TestRecordSaleScenario:

    async def test_widget_sale_then_oversell(
        self, sale_service, product_service, sale_repository, sale_item_repository, widget, db, session_factory
    ):
        sale = await sale_service.record_sale("cashier1", [line(widget.id, 3)], db)

        assert isinstance(sale, SaleDetailDTO)
        assert sale.total == Decimal("450.00")
        assert sale.cashier == "cashier1"
        assert await _stock(product_service, session_factory, widget.id) == 7

        async with session_factory() as second:
            with pytest.raises(InsufficientStock) as exc:
                await sale_service.record_sale("cashier1", [line(widget.id, 8)], second)

        assert exc.value.product_id == widget.id
        assert exc.value.available == 7
        assert exc.value.requested == 8
        assert await _stock(product_service, session_factory, widget.id) == 7
        assert await _counts(sale_repository, sale_item_repository, session_factory) == (1, 1)


class TestRecordSale:

    async def test_items_and_totals_are_computed_server_side(self, sale_service, product_service, db):
        a = await product_service.create(widget_payload(name="A", stock=20), db)
        b = await product_service.create(widget_payload(name="B", stock=20), db)

        sale = await sale_service.record_sale(
            "cashier1",
            [line(a.id, 2, "10.25"), line(b.id, 3, "0.10")],
            db,
        )

        assert [(i.product_id, i.qty, i.sale_price, i.subtotal) for i in sale.items] == [
            (a.id, 2, Decimal("10.25"), Decimal("20.50")),
            (b.id, 3, Decimal("0.10"), Decimal("0.30")),
        ]
        assert [i.product_name for i in sale.items] == ["A", "B"]
        assert sale.total == Decimal("20.80")
        assert sale.total == sum(i.subtotal for i in sale.items)

    async def test_stock_decrements_by_summed_quantity(self, sale_service, product_service, db, session_factory):
        a = await product_service.create(widget_payload(name="A", stock=10), db)
        b = await product_service.create(widget_payload(name="B", stock=5), db)

        await sale_service.record_sale(
            "cashier1",
            [line(a.id, 2), line(b.id, 1), line(a.id, 4)],
            db,
        )

        assert await _stock(product_service, session_factory, a.id) == 4
        assert await _stock(product_service, session_factory, b.id) == 4

    async def test_cumulative_quantity_is_checked_per_product(
        self, sale_service, product_service, sale_repository, sale_item_repository, widget, db, session_factory
    ):
        # each line fits on its own, together they do not
        with pytest.raises(InsufficientStock) as exc:
            await sale_service.record_sale("cashier1", [line(widget.id, 6), line(widget.id, 5)], db)

        assert exc.value.requested == 11
        assert exc.value.available == 10
        assert await _stock(product_service, session_factory, widget.id) == 10
        assert await _counts(sale_repository, sale_item_repository, session_factory) == (0, 0)

    async def test_one_short_product_aborts_whole_sale(
        self, sale_service, product_service, sale_repository, sale_item_repository, db, session_factory
    ):
        plenty = await product_service.create(widget_payload(name="Plenty", stock=100), db)
        scarce = await product_service.create(widget_payload(name="Scarce", stock=1), db)

        with pytest.raises(InsufficientStock):
            await sale_service.record_sale("cashier1", [line(plenty.id, 5), line(scarce.id, 2)], db)

        assert await _stock(product_service, session_factory, plenty.id) == 100
        assert await _stock(product_service, session_factory, scarce.id) == 1
        assert await _counts(sale_repository, sale_item_repository, session_factory) == (0, 0)

    async def test_exact_stock_can_be_sold(self, sale_service, product_service, widget, db, session_factory):
        await sale_service.record_sale("cashier1", [line(widget.id, 10)], db)
        assert await _stock(product_service, session_factory, widget.id) == 0

    async def test_accepts_schema_items(self, sale_service, widget, db):
        sale = await sale_service.record_sale(
            "cashier1",
            [SaleItemInput(product_id=widget.id, qty=1, sale_price=Decimal("150.00"))],
            db,
        )
        assert sale.total == Decimal("150.00")

    async def test_sale_price_is_independent_of_catalog_price(self, sale_service, widget, db):
        sale = await sale_service.record_sale("cashier1", [line(widget.id, 1, "120.00")], db)
        assert sale.items[0].sale_price == Decimal("120.00")
        assert sale.total == Decimal("120.00")

    async def test_matching_caller_total_is_accepted(self, sale_service, widget, db):
        sale = await sale_service.record_sale(
            "cashier1", [line(widget.id, 3)], db, total=Decimal("450.00")
        )
        assert sale.total == Decimal("450.00")

    async def test_mismatching_caller_total_is_rejected(
        self, sale_service, product_service, widget, db, session_factory
    ):
        with pytest.raises(ValidationError):
            await sale_service.record_sale("cashier1", [line(widget.id, 3)], db, total=Decimal("1.00"))
        assert await _stock(product_service, session_factory, widget.id) == 10

    async def test_explicit_occurred_at(self, sale_service, widget, db):
        when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        sale = await sale_service.record_sale("cashier1", [line(widget.id, 1)], db, occurred_at=when)
        assert sale.occurred_at.replace(tzinfo=None) == when.replace(tzinfo=None)


class TestRecordSaleValidation:

    @pytest.mark.parametrize(
        "items",
        [
            [],
            [{"product_id": 1, "qty": 0, "sale_price": Decimal("1.00")}],
            [{"product_id": 1, "qty": 1, "sale_price": Decimal("0")}],
            [{"product_id": 1, "qty": 1.5, "sale_price": Decimal("1.00")}],
            [{"product_id": 1, "qty": 1}],
        ],
    )
    async def test_malformed_items(self, sale_service, db, items):
        with pytest.raises(ValidationError):
            await sale_service.record_sale("cashier1", items, db)

    async def test_blank_cashier(self, sale_service, widget, db):
        with pytest.raises(ValidationError):
            await sale_service.record_sale("  ", [line(widget.id, 1)], db)

    async def test_unknown_product(
        self, sale_service, sale_repository, sale_item_repository, widget, db, session_factory
    ):
        with pytest.raises(ValidationError):
            await sale_service.record_sale("cashier1", [line(widget.id, 1), line(9999, 1)], db)
        assert await _counts(sale_repository, sale_item_repository, session_factory) == (0, 0)

    @pytest.mark.parametrize(
        "qty,price",
        [
            (1, "1e30"),
            (1, "100000000.00"),
            (1, "99999999.996"),
            (2**31, "1.00"),
            (200, "99999999.99"),
        ],
    )
    async def test_line_beyond_column_range(
        self, sale_service, product_service, sale_repository, sale_item_repository, widget, db, session_factory, qty, price
    ):
        with pytest.raises(ValidationError):
            await sale_service.record_sale("cashier1", [line(widget.id, qty, price)], db)

        assert await _counts(sale_repository, sale_item_repository, session_factory) == (0, 0)
        assert await _stock(product_service, session_factory, widget.id) == 10

    async def test_total_beyond_column_range(
        self, sale_service, sale_repository, sale_item_repository, widget, db, session_factory
    ):
        lines = [line(widget.id, 60, "99999999.99"), line(widget.id, 60, "99999999.99")]
        with pytest.raises(ValidationError):
            await sale_service.record_sale("cashier1", lines, db)
        assert await _counts(sale_repository, sale_item_repository, session_factory) == (0, 0)

    async def test_unrepresentable_caller_total(self, sale_service, widget, db):
        with pytest.raises(ValidationError):
            await sale_service.record_sale("cashier1", [line(widget.id, 1)], db, total="1e30")


class TestRecordSaleRollback:

    async def test_storage_failure_after_inserts_leaves_nothing_behind(
        self,
        sale_service,
        sale_item_repository,
        product_service,
        sale_repository,
        widget,
        db,
        session_factory,
        monkeypatch,
    ):
        async def boom(*args, **kwargs):
            raise OperationalError("INSERT INTO sale_items", {}, Exception("connection lost"))

        monkeypatch.setattr(sale_item_repository, "bulk_insert_items", boom)

        with pytest.raises(StorageUnavailable) as exc:
            await sale_service.record_sale("cashier1", [line(widget.id, 3)], db)

        assert isinstance(exc.value.__cause__, OperationalError)
        assert await _stock(product_service, session_factory, widget.id) == 10
        assert await _counts(sale_repository, sale_item_repository, session_factory) == (0, 0)

    async def test_concurrent_decrement_is_reported_as_insufficient_stock(
        self, sale_service, product_repository, product_service, widget, db, session_factory, monkeypatch
    ):
        async def lost_race(*args, **kwargs):
            return False

        monkeypatch.setattr(product_repository, "decrease_stock", lost_race)

        with pytest.raises(InsufficientStock):
            await sale_service.record_sale("cashier1", [line(widget.id, 3)], db)
        assert await _stock(product_service, session_factory, widget.id) == 10


class TestListSales:

    async def test_newest_first_with_items(self, sale_service, product_service, db):
        a = await product_service.create(widget_payload(name="Alpha", stock=50), db)
        b = await product_service.create(widget_payload(name="Beta", stock=50), db)

        first = await sale_service.record_sale("cashier1", [line(a.id, 1)], db)
        second = await sale_service.record_sale("cashier2", [line(a.id, 2), line(b.id, 1, "9.99")], db)

        sales = await sale_service.list_sales(db)

        assert [s.id for s in sales] == [second.id, first.id]
        assert len(sales[0].items) == 2
        assert [i.product_name for i in sales[0].items] == ["Alpha", "Beta"]
        assert sales[0].total == Decimal("309.99")
        assert len(sales[1].items) == 1
        assert sales[1].cashier == "cashier1"

    async def test_ordered_by_occurred_at_not_insertion(self, sale_service, widget, db):
        now = datetime.now(timezone.utc)
        recent = await sale_service.record_sale("c", [line(widget.id, 1)], db, occurred_at=now)
        older = await sale_service.record_sale(
            "c", [line(widget.id, 1)], db, occurred_at=now - timedelta(days=3)
        )

        sales = await sale_service.list_sales(db)
        assert [s.id for s in sales] == [recent.id, older.id]

    async def test_product_name_is_current(self, sale_service, product_service, widget, db, session_factory):
        await sale_service.record_sale("cashier1", [line(widget.id, 1)], db)
        await product_service.update(widget.id, ProductUpdate(name="Widget Pro"), db)

        async with session_factory() as fresh:
            sales = await sale_service.list_sales(fresh)
        assert sales[0].items[0].product_name == "Widget Pro"

    async def test_empty(self, sale_service, db):
        assert await sale_service.list_sales(db) == []
