from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from schemas import DashboardStats, ProductOut
from services import crud
from token_module import get_current_user

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
def stats(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return DashboardStats(**crud.get_dashboard_stats(db, current_user))


@router.get("/recent-products", response_model=List[ProductOut])
def recent_products(
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud.get_recent_products(db, current_user.id, limit)
