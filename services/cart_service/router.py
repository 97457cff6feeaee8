from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.responses import Envelope, ok
from shared.security import CurrentUser, get_current_user

from .schemas import CartCount, CartItemCreate, CartItemUpdate, CartResponse
from .service import CartService

# Every cart route acts on the authenticated user's own cart
router = APIRouter(prefix="/cart", tags=["Cart"])


@router.get("", response_model=Envelope[CartResponse])
async def get_cart(
    user: CurrentUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    cart = await CartService.get(db, user.id)
    return ok("Cart retrieved successfully", CartResponse.model_validate(cart))


@router.get("/count", response_model=Envelope[CartCount])
async def get_cart_item_count(
    user: CurrentUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    count = await CartService.count(db, user.id)
    return ok("Cart item count retrieved successfully", CartCount(count=count))


@router.post("", response_model=Envelope[CartResponse])
async def add_to_cart(
    item: CartItemCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    cart = await CartService.add_item(db, user.id, item.product_id, item.quantity)
    return ok("Item added to cart successfully", CartResponse.model_validate(cart))


@router.put("/{item_id}", response_model=Envelope[CartResponse])
async def update_cart_item(
    item_id: int,
    payload: CartItemUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    cart = await CartService.update_item(db, user.id, item_id, payload.quantity)
    return ok("Cart updated successfully", CartResponse.model_validate(cart))


@router.delete("/{item_id}", response_model=Envelope[CartResponse])
async def remove_from_cart(
    item_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    cart = await CartService.remove_item(db, user.id, item_id)
    return ok("Item removed from cart successfully", CartResponse.model_validate(cart))


@router.delete("", response_model=Envelope[CartResponse])
async def clear_cart(
    user: CurrentUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    cart = await CartService.clear(db, user.id)
    return ok("Cart cleared successfully", CartResponse.model_validate(cart))
