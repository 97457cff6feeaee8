from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete, func, select
from .models import Order, OrderItem, OrderStatusHistory

class OrderRepository:
    @staticmethod
    async def create_order(db: AsyncSession, order: Order) -> Order:
        db.add(order)
        await db.commit()
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.id == order_id))
        return result.scalars().first()

    @staticmethod
    async def save(db: AsyncSession, order: Order) -> Order:
        db.add(order)
        await db.commit()
        return order

    @staticmethod
    async def delete_order(db: AsyncSession, order_id: int) -> None:
        # Statement-level deletes; children first since SQLite does not enforce ON DELETE
        await db.execute(delete(OrderStatusHistory).where(OrderStatusHistory.order_id == order_id))
        await db.execute(delete(OrderItem).where(OrderItem.order_id == order_id))
        await db.execute(delete(Order).where(Order.id == order_id))
        await db.commit()

    @staticmethod
    async def list_orders(
        db: AsyncSession,
        page: int,
        limit: int,
        user_id: str | None = None,
        status: str | None = None,
        is_paid: bool | None = None,
    ) -> tuple[list[Order], int]:
        filters = []
        if user_id is not None:
            filters.append(Order.user_id == user_id)
        if status is not None:
            filters.append(Order.status == status)
        if is_paid is not None:
            filters.append(Order.is_paid == is_paid)

        total = await db.scalar(select(func.count(Order.id)).where(*filters))
        result = await db.execute(
            select(Order)
            .where(*filters)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    @staticmethod
    async def overall_stats(db: AsyncSession) -> tuple[int, float, float]:
        result = await db.execute(
            select(func.count(Order.id), func.sum(Order.total_price), func.avg(Order.total_price))
        )
        count, revenue, average = result.one()
        return count or 0, revenue or 0.0, average or 0.0

    @staticmethod
    async def count_by_status(db: AsyncSession) -> list[tuple[str, int]]:
        result = await db.execute(
            select(Order.status, func.count(Order.id)).group_by(Order.status).order_by(Order.status)
        )
        return [(status, count) for status, count in result.all()]
