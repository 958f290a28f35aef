from typing import Any, Dict, List, Union
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.core.errors import ValidationError
from posledger.core.logger import logger
from posledger.utils import money
from posledger.utils.tx import atomic, read_only
from posledger.v1_0.models import Product
from posledger.v1_0.repositories import ProductRepository
from posledger.v1_0.schemas import ProductCreate, ProductUpdate
from posledger.v1_0.entities import ProductDTO, NotFound, DeleteResultDTO

TEXT_FIELDS = ("name", "category")
PRICE_FIELDS = ("purchase_price", "sale_price")


def to_product_dto(p: Product) -> ProductDTO:
    return ProductDTO(
        id=p.id,
        name=p.name,
        category=p.category,
        purchase_price=money.decode(p.purchase_price),
        sale_price=money.decode(p.sale_price),
        stock=p.stock,
        description=p.description,
        created_at=p.created_at,
    )


def normalize_product_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Re-check the catalog invariants on the fields present in `data` and
    return them in storage form (prices quantized to 2 places).

    Raises:
        ValidationError: blank name/category, a price that is not positive or
            does not fit its column, stock out of range, or a non-text description.
    """
    out = dict(data)
    for name in TEXT_FIELDS:
        if name in out and (not isinstance(out[name], str) or not out[name].strip()):
            raise ValidationError(f"{name} must be a non-empty string")
    for name in PRICE_FIELDS:
        if name in out:
            if out[name] is None:
                raise ValidationError(f"{name} is required")
            value = money.encode(out[name])
            if value <= 0:
                raise ValidationError(f"{name} must be greater than zero")
            out[name] = money.check_limit(value, money.PRICE_LIMIT, name)
    if "stock" in out:
        stock = out["stock"]
        if isinstance(stock, bool) or not isinstance(stock, int) or not 0 <= stock <= money.MAX_INT:
            raise ValidationError(f"stock must be an integer between 0 and {money.MAX_INT}")
    if "description" in out and out["description"] is not None and not isinstance(out["description"], str):
        raise ValidationError("description must be a string or null")
    return out


class ProductService:
    def __init__(self, product_repository: ProductRepository) -> None:
        self.product_repository = product_repository

    async def create(self, payload: ProductCreate, db: AsyncSession) -> ProductDTO:
        """
        Persist a new product.

        The schema already rejects bad input; the invariants are checked again
        here so no invalid record reaches storage.

        Args:
            payload: ProductCreate data.
            db: Active async database session.

        Returns:
            ProductDTO with the storage-assigned id and created_at.

        Raises:
            ValidationError: If a catalog invariant is violated.
            StorageUnavailable: If the database call fails.
        """
        data = normalize_product_fields(payload.model_dump())
        logger.info("[ProductService] Creating product name=%s", data["name"])

        async with atomic(db, "create product"):
            p = await self.product_repository.create_product(data, db)
            dto = to_product_dto(p)

        logger.info("[ProductService] Product created ID=%s", dto.id)
        return dto

    async def get(self, product_id: int, db: AsyncSession) -> Union[ProductDTO, NotFound]:
        """Product by id, or a NotFound value when it does not exist."""
        logger.debug("[ProductService] Get product ID=%s", product_id)
        async with read_only(db, "get product"):
            p = await self.product_repository.get_product_by_id(product_id, db)
            if not p:
                return NotFound("Product", product_id)
            return to_product_dto(p)

    async def list_all(self, db: AsyncSession) -> List[ProductDTO]:
        """All products, newest first. No pagination."""
        logger.debug("[ProductService] List all products")
        async with read_only(db, "list products"):
            rows = await self.product_repository.list_products(db)
            return [to_product_dto(p) for p in rows]

    async def update(
        self,
        product_id: int,
        payload: ProductUpdate,
        db: AsyncSession,
    ) -> Union[ProductDTO, NotFound]:
        """
        Apply a partial update.

        Only fields present in the payload change; `description=None` sent
        explicitly clears the description.

        Args:
            product_id: Identifier of the product to update.
            payload: ProductUpdate carrying the fields to change.
            db: Active async database session.

        Returns:
            The full updated ProductDTO, or NotFound.

        Raises:
            ValidationError: If a present field violates a catalog invariant.
            StorageUnavailable: If the database call fails.
        """
        changes = normalize_product_fields(payload.changes())
        logger.info("[ProductService] Update product ID=%s fields=%s", product_id, sorted(changes))

        async with atomic(db, "update product"):
            p = await self.product_repository.update_product(product_id, changes, db)
            if not p:
                logger.info("[ProductService] Update skipped, product ID=%s not found", product_id)
                return NotFound("Product", product_id)
            return to_product_dto(p)

    async def delete(self, product_id: int, db: AsyncSession) -> DeleteResultDTO:
        """
        Delete a product. Its sale items go with it (cascade).

        A missing id is a normal negative result, never an exception.
        """
        logger.warning("[ProductService] Delete product ID=%s", product_id)

        async with atomic(db, "delete product"):
            ok = await self.product_repository.delete_product(product_id, db)

        if not ok:
            return DeleteResultDTO(success=False, message=NotFound("Product", product_id).message)
        return DeleteResultDTO(success=True, message=f"Product with ID {product_id} deleted successfully")
