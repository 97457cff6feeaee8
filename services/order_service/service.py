import math
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import InvalidTransition, NotFound, Unauthorized
from shared.observability import ecomm_order_cancellations_total, ecomm_stock_released_units_total
from shared.security import CurrentUser
from services.orchestrator.checkout_saga import checkout
from services.product_service.service import InventoryLedger
from .models import Order, OrderStatus
from .repository import OrderRepository
from .schemas import (
    OrderCreate,
    OrderStats,
    OverallStats,
    Pagination,
    PaymentResult,
    StatusCount,
)

logger = structlog.get_logger(__name__)


def _ensure_access(order: Order, user: CurrentUser, action: str) -> None:
    if order.user_id != user.id and not user.is_admin:
        raise Unauthorized(f"Not authorized to {action} this order")


def _pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if limit else 0)


class OrderService:
    @staticmethod
    async def create_order(db: AsyncSession, user: CurrentUser, data: OrderCreate) -> Order:
        return await checkout(db, user.id, data)

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int) -> Order:
        order = await OrderRepository.get_order(db, order_id)
        if not order:
            raise NotFound(f"Order not found with id of {order_id}")
        return order

    @staticmethod
    async def get_order_for(db: AsyncSession, order_id: int, user: CurrentUser) -> Order:
        order = await OrderService.get_order(db, order_id)
        _ensure_access(order, user, "access")
        return order

    @staticmethod
    async def list_user_orders(db: AsyncSession, user: CurrentUser, page: int, limit: int):
        orders, total = await OrderRepository.list_orders(db, page, limit, user_id=user.id)
        return orders, _pagination(page, limit, total)

    @staticmethod
    async def list_all_orders(
        db: AsyncSession,
        page: int,
        limit: int,
        status: OrderStatus | None = None,
        is_paid: bool | None = None,
    ):
        orders, total = await OrderRepository.list_orders(
            db, page, limit, status=status.value if status else None, is_paid=is_paid
        )
        return orders, _pagination(page, limit, total)

    @staticmethod
    async def mark_paid(db: AsyncSession, order_id: int, user: CurrentUser, payment: PaymentResult) -> Order:
        order = await OrderService.get_order(db, order_id)
        _ensure_access(order, user, "update")

        order.mark_paid(payment.model_dump())
        await OrderRepository.save(db, order)
        logger.info("order_paid", order_id=order.id, status=order.status)
        return order

    @staticmethod
    async def cancel(db: AsyncSession, order_id: int, user: CurrentUser) -> Order:
        """Cancels a pending or processing order and returns its stock.

        The status change and every release commit together.
        """
        order = await OrderService.get_order(db, order_id)
        _ensure_access(order, user, "cancel")

        if not order.is_cancellable:
            raise InvalidTransition(
                order.status,
                OrderStatus.CANCELLED.value,
                "Order cannot be cancelled at this stage",
            )

        order.set_status(OrderStatus.CANCELLED)
        for item in order.items:
            await InventoryLedger.release(db, item.product_id, item.quantity, commit=False)
        await OrderRepository.save(db, order)

        actor = "owner" if order.user_id == user.id else "admin"
        ecomm_stock_released_units_total.inc(sum(item.quantity for item in order.items))
        ecomm_order_cancellations_total.labels(actor=actor).inc()
        logger.info("order_cancelled", order_id=order.id, actor=actor)
        return order

    @staticmethod
    async def update_status(
        db: AsyncSession,
        order_id: int,
        status: OrderStatus,
        tracking_number: str | None = None,
        note: str | None = None,
        estimated_delivery: datetime | None = None,
    ) -> Order:
        """Administrative status set.

        Any of the six statuses is accepted from any status, and stock is not
        touched; the stricter rules live in ``cancel`` and ``mark_paid``.
        Re-setting the current status records no history entry.
        """
        order = await OrderService.get_order(db, order_id)

        previous = order.status
        if OrderStatus(status).value != previous:
            order.set_status(status, note=note)
        if tracking_number:
            order.tracking_number = tracking_number
        if estimated_delivery:
            order.estimated_delivery = estimated_delivery
        if OrderStatus(status) is OrderStatus.DELIVERED:
            order.mark_delivered()

        await OrderRepository.save(db, order)
        logger.info("order_status_overridden", order_id=order.id, previous=previous, status=order.status)
        return order

    @staticmethod
    async def stats(db: AsyncSession) -> OrderStats:
        count, revenue, average = await OrderRepository.overall_stats(db)
        breakdown = await OrderRepository.count_by_status(db)
        return OrderStats(
            overall=OverallStats(
                total_orders=count,
                total_revenue=revenue,
                average_order_value=average,
            ),
            status_breakdown=[StatusCount(status=s, count=c) for s, c in breakdown],
        )
