from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.responses import Envelope, ok
from shared.security import CHECKOUT_RATE_LIMIT, CurrentUser, get_current_user, limiter, require_admin
from .models import OrderStatus
from .schemas import (
    OrderCreate,
    OrderPage,
    OrderResponse,
    OrderStats,
    OrderStatusUpdate,
    PaymentResult,
)
from .service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


def _page(orders, pagination) -> OrderPage:
    return OrderPage(
        orders=[OrderResponse.model_validate(o) for o in orders],
        pagination=pagination,
    )


@router.post("", response_model=Envelope[OrderResponse], status_code=status.HTTP_201_CREATED)
@limiter.limit(CHECKOUT_RATE_LIMIT)
async def create_order(
    request: Request,  # required by slowapi
    payload: OrderCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService.create_order(db, user, payload)
    return ok("Order created successfully", OrderResponse.model_validate(order))


@router.get("", response_model=Envelope[OrderPage])
async def get_user_orders(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    orders, pagination = await OrderService.list_user_orders(db, user, page, limit)
    return ok("Orders retrieved successfully", _page(orders, pagination))


# --- ADMIN (declared before /{order_id} so the literal paths win) ---

@router.get("/admin/all", response_model=Envelope[OrderPage])
async def get_all_orders(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status_filter: Optional[OrderStatus] = Query(default=None, alias="status"),
    is_paid: Optional[bool] = Query(default=None),
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    orders, pagination = await OrderService.list_all_orders(db, page, limit, status_filter, is_paid)
    return ok("All orders retrieved successfully", _page(orders, pagination))


@router.get("/admin/stats", response_model=Envelope[OrderStats])
async def get_order_stats(
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    stats = await OrderService.stats(db)
    return ok("Order statistics retrieved successfully", stats)


@router.get("/{order_id}", response_model=Envelope[OrderResponse])
async def get_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService.get_order_for(db, order_id, user)
    return ok("Order retrieved successfully", OrderResponse.model_validate(order))


@router.put("/{order_id}/pay", response_model=Envelope[OrderResponse])
async def update_order_to_paid(
    order_id: int,
    payment: PaymentResult,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService.mark_paid(db, order_id, user, payment)
    return ok("Order updated to paid successfully", OrderResponse.model_validate(order))


@router.put("/{order_id}/cancel", response_model=Envelope[OrderResponse])
async def cancel_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService.cancel(db, order_id, user)
    return ok("Order cancelled successfully", OrderResponse.model_validate(order))


@router.put("/{order_id}/status", response_model=Envelope[OrderResponse])
async def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService.update_status(
        db, order_id, payload.status, payload.tracking_number, payload.notes, payload.estimated_delivery
    )
    return ok("Order status updated successfully", OrderResponse.model_validate(order))
