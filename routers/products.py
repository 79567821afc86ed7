# routers/products.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db
from errors import AccessDeniedError, NotFoundError
from models.product import Product
from models.user import User
from schemas import DescriptionOut, MessageOut, ProductCreate, ProductOut, ProductUpdate
from services import crud
from token_module import get_current_user

router = APIRouter(prefix="/api/products", tags=["products"])


def get_owned_product(db: Session, user: User, product_id: int) -> Product:
    product = crud.get_product(db, product_id)
    if not product:
        raise NotFoundError("Product not found")
    if product.user_id != user.id:
        raise AccessDeniedError()
    return product


@router.get("", response_model=List[ProductOut])
def list_products(
    limit: Optional[int] = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Newest first; without `limit` every product of the user is returned."""
    return crud.get_user_products(db, current_user.id, limit=limit, offset=offset)


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = crud.create_product(db, current_user.id, payload.model_dump())
    crud.create_analytics(
        db,
        user_id=current_user.id,
        event_type="product_created",
        event_data={"productName": product.name, "category": product.category},
        product_id=product.id,
    )
    return product


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return get_owned_product(db, current_user, product_id)


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = get_owned_product(db, current_user, product_id)
    # partial update: only what the client sent
    return crud.update_product(db, product, payload.model_dump(exclude_unset=True))


@router.delete("/{product_id}", response_model=MessageOut)
def delete_product(product_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    product = get_owned_product(db, current_user, product_id)
    crud.delete_product(db, product)
    return {"message": "Product deleted successfully"}


@router.get("/{product_id}/descriptions", response_model=List[DescriptionOut])
def product_descriptions(product_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    get_owned_product(db, current_user, product_id)
    return crud.get_product_descriptions(db, product_id)
