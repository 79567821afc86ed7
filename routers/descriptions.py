from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from errors import AccessDeniedError, NotFoundError
from models.description import Description
from models.user import User
from schemas import DescriptionOut, DescriptionUpdate
from services import crud
from token_module import get_current_user

router = APIRouter(prefix="/api/descriptions", tags=["descriptions"])


def _owned(db: Session, user: User, description_id: int) -> Description:
    description = crud.get_description(db, description_id)
    if not description:
        raise NotFoundError("Description not found")
    if description.user_id != user.id:
        raise AccessDeniedError()
    return description


@router.get("", response_model=List[DescriptionOut])
def list_descriptions(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return crud.get_user_descriptions(db, current_user.id)


@router.get("/{description_id}", response_model=DescriptionOut)
def get_description(description_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _owned(db, current_user, description_id)


@router.patch("/{description_id}", response_model=DescriptionOut)
def update_description(
    description_id: int,
    payload: DescriptionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    description = _owned(db, current_user, description_id)
    return crud.update_description(db, description, payload.is_active)
