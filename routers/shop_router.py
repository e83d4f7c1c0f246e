"""
Shop Router - product catalog (admin management and public listing)
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from auth import require_admin
from backend.utils.responses import success_response
from crud import get_store
from crud.base import EntityStore
from models.fitness import User
from services.catalog_service import CatalogService

products_router = APIRouter(prefix="/api/admin/products", tags=["admin-shop"])
shop_router = APIRouter(prefix="/api/shop", tags=["shop"])


class ProductCreateRequest(BaseModel):
    label: str
    description: str
    price: float
    image: Optional[str] = None


@products_router.get("")
async def list_products(store: EntityStore = Depends(get_store), admin: User = Depends(require_admin)):
    return success_response(await CatalogService(store).list_products())


@products_router.post("")
async def create_product(
    request: ProductCreateRequest,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    product = await CatalogService(store).create_product(
        label=request.label,
        description=request.description,
        price=request.price,
        image=request.image,
    )
    return success_response(product, message="Product created", status=201)


@products_router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    await CatalogService(store).delete_product(product_id)
    return success_response(message="Product deleted")


@shop_router.get("/products")
async def browse_products(store: EntityStore = Depends(get_store)):
    """Public product listing for the shop page"""
    return success_response(await CatalogService(store).list_products())
