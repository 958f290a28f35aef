from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from sqlalchemy.ext.asyncio import AsyncSession

from posledger.core.errors import InsufficientStock, ValidationError
from posledger.core.logger import logger
from posledger.utils import money
from posledger.utils.tx import atomic, read_only
from posledger.v1_0.entities import SaleDetailDTO, SaleItemDTO, SaleItemViewDTO
from posledger.v1_0.repositories import ProductRepository, SaleItemRepository, SaleRepository
from posledger.v1_0.schemas import SaleInsert, SaleItemCreate, SaleItemInput

ItemLike = Union[SaleItemInput, Mapping[str, Any]]

ITEM_COLUMNS = (
    "item_id",
    "item_product_id",
    "item_qty",
    "item_sale_price",
    "item_subtotal",
    "product_name",
)


def assemble_sale_details(rows: Iterable[Mapping[str, Any]]) -> List[SaleDetailDTO]:
    """
    Group flattened sale/item/product join rows into SaleDetailDTOs.

    Rows must already be sorted by sale recency; the output keeps the order
    in which each sale id is first seen. A row whose item columns are not all
    present (a sale without items, outer-joined) adds no item.
    """
    sales: Dict[int, SaleDetailDTO] = {}
    for row in rows:
        sale_id = row["sale_id"]
        detail = sales.get(sale_id)
        if detail is None:
            detail = SaleDetailDTO(
                id=sale_id,
                occurred_at=row["occurred_at"],
                total=money.decode(row["total"]),
                cashier=row["cashier"],
                items=[],
            )
            sales[sale_id] = detail

        if any(row[col] is None for col in ITEM_COLUMNS):
            continue

        detail.items.append(
            SaleItemViewDTO(
                product_id=row["item_product_id"],
                qty=row["item_qty"],
                sale_price=money.decode(row["item_sale_price"]),
                subtotal=money.decode(row["item_subtotal"]),
                product_name=row["product_name"],
            )
        )
    return list(sales.values())


class SaleService:
    def __init__(
        self,
        sale_repository: SaleRepository,
        sale_item_repository: SaleItemRepository,
        product_repository: ProductRepository,
    ) -> None:
        self.sale_repository = sale_repository
        self.sale_item_repository = sale_item_repository
        self.product_repository = product_repository

    def _build_items(self, items: Sequence[ItemLike]) -> List[SaleItemDTO]:
        """
        Validate line shape and price each line with fixed-point arithmetic.

        Raises:
            ValidationError: If the list is empty, a line is malformed, or a price
                or subtotal does not fit its column.
        """
        if not items:
            raise ValidationError("Sale must contain at least one item")

        out: List[SaleItemDTO] = []
        for idx, raw in enumerate(items, start=1):
            data = raw.model_dump() if isinstance(raw, SaleItemInput) else dict(raw)
            try:
                product_id = data["product_id"]
                qty = data["qty"]
                sale_price = data["sale_price"]
            except KeyError as e:
                raise ValidationError(f"Item #{idx} is missing {e.args[0]}") from None

            if isinstance(product_id, bool) or not isinstance(product_id, int) or not 1 <= product_id <= money.MAX_INT:
                raise ValidationError(f"Item #{idx}: product_id must be a positive integer")
            if isinstance(qty, bool) or not isinstance(qty, int) or not 1 <= qty <= money.MAX_INT:
                raise ValidationError(f"Item #{idx}: qty must be an integer between 1 and {money.MAX_INT}")
            price = money.encode(sale_price)
            if price <= 0:
                raise ValidationError(f"Item #{idx}: sale_price must be > 0")
            money.check_limit(price, money.PRICE_LIMIT, f"Item #{idx}: sale_price")
            subtotal = money.check_limit(
                money.line_subtotal(qty, price), money.TOTAL_LIMIT, f"Item #{idx}: subtotal"
            )

            out.append(
                SaleItemDTO(
                    product_id=product_id,
                    qty=qty,
                    sale_price=price,
                    subtotal=subtotal,
                )
            )
        return out

    @staticmethod
    def _requested_by_product(items: Sequence[SaleItemDTO]) -> Dict[int, int]:
        """Cumulative quantity per product, in first-seen order."""
        requested: Dict[int, int] = {}
        for it in items:
            requested[it.product_id] = requested.get(it.product_id, 0) + it.qty
        return requested

    async def _reserve_stock(self, requested: Dict[int, int], db: AsyncSession) -> None:
        """
        Lock every product in the sale, check cumulative quantities against
        stock, then decrement. Must run inside the sale's transaction.

        Raises:
            ValidationError: If a product does not exist.
            InsufficientStock: If a product cannot cover its requested total.
        """
        products = await self.product_repository.lock_products(list(requested), db)

        for product_id, qty in requested.items():
            product = products.get(product_id)
            if product is None:
                raise ValidationError(f"Product {product_id} does not exist")
            if product.stock < qty:
                raise InsufficientStock(product_id=product_id, requested=qty, available=product.stock)

        for product_id, qty in requested.items():
            ok = await self.product_repository.decrease_stock(product_id, qty, db)
            if not ok:
                product = await self.product_repository.get_product_by_id(product_id, db)
                available = product.stock if product else 0
                raise InsufficientStock(product_id=product_id, requested=qty, available=available)

    async def record_sale(
        self,
        cashier: str,
        items: Sequence[ItemLike],
        db: AsyncSession,
        *,
        occurred_at: Optional[datetime] = None,
        total: Optional[Any] = None,
    ) -> SaleDetailDTO:
        """
        Record a sale atomically: stock check, sale row, item rows and stock
        decrement commit together or not at all.

        Subtotals and the total are always computed here from
        `qty * sale_price`; a caller-supplied `total` is only accepted when
        it matches.

        Args:
            cashier: Who recorded the sale.
            items: Lines with product_id, qty and sale_price.
            db: Active async database session.
            occurred_at: Optional explicit sale datetime; defaults to now.
            total: Optional expected total, checked against the computed one.

        Returns:
            SaleDetailDTO read back from storage, with product names.

        Raises:
            ValidationError: On malformed input or unknown products.
            InsufficientStock: If cumulative quantity exceeds stock.
            StorageUnavailable: If the database fails; nothing is persisted.
        """
        if not isinstance(cashier, str) or not cashier.strip():
            raise ValidationError("cashier must be a non-empty string")

        lines = self._build_items(items)
        computed_total = money.check_limit(
            money.sum_amounts(it.subtotal for it in lines), money.TOTAL_LIMIT, "total"
        )
        if total is not None and money.encode(total) != computed_total:
            raise ValidationError(
                f"total {money.encode(total)} does not match the sum of item subtotals {computed_total}"
            )
        requested = self._requested_by_product(lines)

        logger.info(
            "[SaleService] record_sale cashier=%s lines=%s products=%s total=%s",
            cashier,
            len(lines),
            len(requested),
            computed_total,
        )

        try:
            async with atomic(db, "record sale"):
                await self._reserve_stock(requested, db)

                sale = await self.sale_repository.create_sale(
                    SaleInsert(cashier=cashier, total=computed_total, occurred_at=occurred_at),
                    db,
                )
                await self.sale_item_repository.bulk_insert_items(
                    [
                        SaleItemCreate(
                            sale_id=sale.id,
                            product_id=it.product_id,
                            qty=it.qty,
                            sale_price=it.sale_price,
                            subtotal=it.subtotal,
                        )
                        for it in lines
                    ],
                    db,
                )

                rows = await self.sale_repository.list_with_items_rows(db, sale_ids=[sale.id])
                detail = assemble_sale_details(rows)[0]
        except InsufficientStock as e:
            logger.warning("[SaleService] Sale rejected: %s", e.detail)
            raise

        logger.info("[SaleService] Sale recorded ID=%s total=%s", detail.id, detail.total)
        return detail

    async def list_sales(self, db: AsyncSession) -> List[SaleDetailDTO]:
        """All sales, newest first, each with its items and current product names."""
        logger.debug("[SaleService] list_sales")
        async with read_only(db, "list sales"):
            rows = await self.sale_repository.list_with_items_rows(db)
        return assemble_sale_details(rows)
