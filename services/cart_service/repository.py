from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from .models import Cart

class CartRepository:
    @staticmethod
    async def get_by_user(db: AsyncSession, user_id: str) -> Optional[Cart]:
        result = await db.execute(select(Cart).where(Cart.user_id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_total_items(db: AsyncSession, user_id: str) -> Optional[int]:
        result = await db.execute(select(Cart.total_items).where(Cart.user_id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def save(db: AsyncSession, cart: Cart, commit: bool = True) -> Cart:
        cart.recalculate_totals()
        db.add(cart)
        if commit:
            await db.commit()
        else:
            await db.flush()
        return cart
