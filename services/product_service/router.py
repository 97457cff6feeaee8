from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.responses import Envelope, ok
from shared.security import CurrentUser, require_admin
from .schemas import ProductCreate, ProductResponse
from .service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])


@router.post("", response_model=Envelope[ProductResponse], status_code=status.HTTP_201_CREATED)
async def create_product(
    product: ProductCreate,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    created = await ProductService.create_product(db, product)
    return ok("Product created successfully", ProductResponse.model_validate(created))

@router.get("/{product_id}", response_model=Envelope[ProductResponse])
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await ProductService.get_product_by_id(db, product_id)
    return ok("Product retrieved successfully", ProductResponse.model_validate(product))
