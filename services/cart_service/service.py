import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import InsufficientStock, NotFound, Unavailable, ValidationError
from services.product_service.models import Product
from services.product_service.repository import ProductRepository
from .models import Cart, CartItem
from .repository import CartRepository

logger = structlog.get_logger(__name__)


def _stock_error(product: Product) -> InsufficientStock:
    return InsufficientStock(
        f"Only {product.stock} items available in stock", product_id=product.id
    )


class CartService:
    @staticmethod
    async def get(db: AsyncSession, user_id: str) -> Cart:
        """Returns the user's cart, creating it on first access.

        Items whose product has gone inactive or out of stock are dropped and
        the pruned cart is persisted.
        """
        cart = await CartRepository.get_by_user(db, user_id)
        if cart is None:
            cart = Cart(user_id=user_id, items=[])
            logger.info("cart_created", user_id=user_id)
            return await CartRepository.save(db, cart)

        stale = [item for item in cart.items if item.product is None or not item.product.is_purchasable]
        if stale:
            for item in stale:
                cart.items.remove(item)
            logger.info("cart_pruned", user_id=user_id, removed=[item.product_id for item in stale])
            await CartRepository.save(db, cart)
        return cart

    @staticmethod
    async def add_item(db: AsyncSession, user_id: str, product_id: int, quantity: int = 1) -> Cart:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        product = await ProductRepository.get_product_by_id(db, product_id)
        if not product:
            raise NotFound("Product not found")
        if not product.is_active:
            raise Unavailable("Product is not available")
        if product.stock < quantity:
            raise _stock_error(product)

        cart = await CartRepository.get_by_user(db, user_id)
        if cart is None:
            cart = Cart(user_id=user_id, items=[])

        item = cart.find_product(product_id)
        if item is not None:
            new_quantity = item.quantity + quantity
            if product.stock < new_quantity:
                raise _stock_error(product)
            item.quantity = new_quantity
            item.price = product.discounted_price
        else:
            cart.items.append(
                CartItem(
                    product_id=product.id,
                    product=product,
                    quantity=quantity,
                    price=product.discounted_price,
                )
            )

        return await CartRepository.save(db, cart)

    @staticmethod
    async def update_item(db: AsyncSession, user_id: str, item_id: int, quantity: int) -> Cart:
        if quantity is None or quantity < 0:
            raise ValidationError("Valid quantity is required")

        cart = await CartRepository.get_by_user(db, user_id)
        if cart is None:
            raise NotFound("Cart not found")

        item = cart.find_item(item_id)
        if item is None:
            raise NotFound("Item not found in cart")

        product = await ProductRepository.get_product_by_id(db, item.product_id)
        if not product:
            raise NotFound("Product not found")

        if quantity == 0:
            cart.items.remove(item)
        else:
            if product.stock < quantity:
                raise _stock_error(product)
            item.quantity = quantity
            item.price = product.discounted_price

        return await CartRepository.save(db, cart)

    @staticmethod
    async def remove_item(db: AsyncSession, user_id: str, item_id: int) -> Cart:
        cart = await CartRepository.get_by_user(db, user_id)
        if cart is None:
            raise NotFound("Cart not found")

        item = cart.find_item(item_id)
        if item is None:
            raise NotFound("Item not found in cart")

        cart.items.remove(item)
        return await CartRepository.save(db, cart)

    @staticmethod
    async def clear(db: AsyncSession, user_id: str) -> Cart:
        cart = await CartRepository.get_by_user(db, user_id)
        if cart is None:
            raise NotFound("Cart not found")

        cart.clear()
        return await CartRepository.save(db, cart)

    @staticmethod
    async def reset(db: AsyncSession, user_id: str, commit: bool = True):
        """Empties the cart after checkout. A user without a cart is left alone."""
        cart = await CartRepository.get_by_user(db, user_id)
        if cart is None:
            return None
        cart.clear()
        return await CartRepository.save(db, cart, commit=commit)

    @staticmethod
    async def count(db: AsyncSession, user_id: str) -> int:
        total = await CartRepository.get_total_items(db, user_id)
        return total or 0
