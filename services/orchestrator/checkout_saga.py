"""Checkout: turns caller-supplied line items into an order.

Every check runs before the first write. The writes themselves (create the
order, reserve stock per line, empty the cart) each commit on their own and
run as a saga, so a failure part-way through is undone by compensations:
reservations already taken are released and the order row is deleted.
"""
from collections import defaultdict

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import (
    EmptyOrder,
    InsufficientStock,
    MissingField,
    NotFound,
    Unavailable,
    ValidationError,
)
from shared.observability import ecomm_checkout_duration_seconds, ecomm_checkout_total
from services.cart_service.service import CartService
from services.order_service.models import Order, OrderItem, OrderStatus
from services.order_service.repository import OrderRepository
from services.order_service.schemas import OrderCreate, OrderItemCreate
from services.product_service.repository import ProductRepository
from services.product_service.service import InventoryLedger
from .saga import SagaOrchestrator

logger = structlog.get_logger(__name__)

PRICE_TOLERANCE = 0.01


# --- VALIDATION (no writes) ---

async def validate_checkout(db: AsyncSession, data: OrderCreate) -> None:
    if not data.order_items:
        raise EmptyOrder()
    if data.shipping_address is None or data.payment_method is None:
        raise MissingField()

    requested = defaultdict(int)
    for item in data.order_items:
        requested[item.product_id] += item.quantity

    products = await ProductRepository.get_products_by_ids(db, requested.keys())
    for product_id, quantity in requested.items():
        product = products.get(product_id)
        if product is None:
            raise NotFound(f"Product not found: {product_id}")
        if not product.is_active:
            raise Unavailable(f"Product is not available: {product.name}")
        if product.stock < quantity:
            raise InsufficientStock(
                f"Insufficient stock for product: {product.name}", product_id=product_id
            )


def price_breakdown(data: OrderCreate) -> dict:
    """Fills in omitted amounts and checks supplied ones against the line items."""
    computed_items = sum(item.price * item.quantity for item in data.order_items)
    items_price = computed_items if data.items_price is None else data.items_price
    if abs(items_price - computed_items) > PRICE_TOLERANCE:
        raise ValidationError(
            f"Items price {items_price:.2f} does not match line items total {computed_items:.2f}"
        )

    computed_total = items_price + data.tax_price + data.shipping_price
    total_price = computed_total if data.total_price is None else data.total_price
    if abs(total_price - computed_total) > PRICE_TOLERANCE:
        raise ValidationError(
            f"Total price {total_price:.2f} does not match items, tax and shipping ({computed_total:.2f})"
        )

    return {
        "items_price": items_price,
        "tax_price": data.tax_price,
        "shipping_price": data.shipping_price,
        "total_price": total_price,
    }


# --- ACTIONS ---

async def create_order(ctx: dict):
    db, data = ctx["db"], ctx["data"]
    order = Order(
        user_id=ctx["user_id"],
        items=[
            OrderItem(
                product_id=item.product_id,
                name=item.name,
                image=item.image,
                price=item.price,
                quantity=item.quantity,
            )
            for item in data.order_items
        ],
        status_history=[],
        shipping_address=data.shipping_address.model_dump(),
        payment_method=data.payment_method.value,
        payment_result=None,
        status=OrderStatus.PENDING.value,
        is_paid=False,
        paid_at=None,
        is_delivered=False,
        delivered_at=None,
        tracking_number=None,
        estimated_delivery=None,
        notes=data.notes,
        **ctx["prices"],
    )
    await OrderRepository.create_order(db, order)
    ctx["order"] = order
    ctx["order_id"] = order.id
    logger.info("order_created", order_id=order.id, order_number=order.order_number)

def reserve_line(item: OrderItemCreate):
    async def reserve_stock(ctx: dict):
        await InventoryLedger.reserve(ctx["db"], item.product_id, item.quantity)
        ctx["reserved"].append((item.product_id, item.quantity))
    return reserve_stock

async def clear_cart(ctx: dict):
    await CartService.reset(ctx["db"], ctx["user_id"])


# --- COMPENSATIONS (Rollbacks) ---
# Each starts by discarding whatever the failed step left in the session.
# The rollback expires loaded instances, so only ids kept in ctx are used.

async def rollback_order(ctx: dict):
    db = ctx["db"]
    await db.rollback()
    await OrderRepository.delete_order(db, ctx["order_id"])

def rollback_line(item: OrderItemCreate):
    async def release_stock(ctx: dict):
        db = ctx["db"]
        await db.rollback()
        await InventoryLedger.release(db, item.product_id, item.quantity)
        ctx["reserved"].remove((item.product_id, item.quantity))
    return release_stock


# --- BUILDER FACTORY ---

def build_checkout_saga(order_items: list[OrderItemCreate]) -> SagaOrchestrator:
    saga = SagaOrchestrator()
    saga.add_step("create_order", create_order, rollback_order)
    for item in order_items:
        saga.add_step("reserve_stock", reserve_line(item), rollback_line(item))
    saga.add_step("clear_cart", clear_cart, None) # Last step, nothing runs after it
    return saga


async def checkout(db: AsyncSession, user_id: str, data: OrderCreate) -> Order:
    with ecomm_checkout_duration_seconds.time():
        try:
            await validate_checkout(db, data)
            ctx = {
                "db": db,
                "user_id": user_id,
                "data": data,
                "prices": price_breakdown(data),
                "reserved": [],
            }
            await build_checkout_saga(data.order_items).execute(ctx)
        except Exception:
            ecomm_checkout_total.labels(status="failed").inc()
            raise

    ecomm_checkout_total.labels(status="success").inc()
    return ctx["order"]
