from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from schemas import AnalyticsOut
from services import crud
from token_module import get_current_user

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("", response_model=List[AnalyticsOut])
def list_analytics(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return crud.get_user_analytics(db, current_user.id)
