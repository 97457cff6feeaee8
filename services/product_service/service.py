import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import InsufficientStock, NotFound
from shared.observability import ecomm_stock_released_units_total
from .models import Product
from .repository import ProductRepository
from .schemas import ProductCreate

logger = structlog.get_logger(__name__)

class ProductService:

    @staticmethod
    async def create_product(db: AsyncSession, data: ProductCreate) -> Product:
        product = Product(**data.model_dump())
        return await ProductRepository.create_product(db, product)

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: int) -> Product:
        product = await ProductRepository.get_product_by_id(db, product_id)
        if not product:
            raise NotFound(f"Product not found with id of {product_id}")
        return product


class InventoryLedger:
    """Owns per-product stock. Stock never drops below zero.

    Both operations are single UPDATE statements; concurrent reservations on
    one product serialize on the row lock.
    """

    @staticmethod
    async def reserve(db: AsyncSession, product_id: int, quantity: int, commit: bool = True) -> None:
        reserved = await ProductRepository.decrement_stock(db, product_id, quantity)
        if not reserved:
            logger.warning("stock_reservation_rejected", product_id=product_id, quantity=quantity)
            raise InsufficientStock(
                f"Insufficient stock for product: {product_id}", product_id=product_id
            )
        if commit:
            await db.commit()
        logger.info("stock_reserved", product_id=product_id, quantity=quantity)

    @staticmethod
    async def release(db: AsyncSession, product_id: int, quantity: int, commit: bool = True) -> None:
        # No upper bound: restores exactly what was reserved, whatever stock is now
        released = await ProductRepository.increment_stock(db, product_id, quantity)
        if not released:
            raise NotFound(f"Product not found with id of {product_id}")
        if commit:
            await db.commit()
            # Deferred releases are counted by the caller once it commits
            ecomm_stock_released_units_total.inc(quantity)
        logger.info("stock_released", product_id=product_id, quantity=quantity)

    @staticmethod
    async def available(db: AsyncSession, product_id: int) -> int:
        stock = await ProductRepository.get_stock(db, product_id)
        if stock is None:
            raise NotFound(f"Product not found with id of {product_id}")
        return stock
