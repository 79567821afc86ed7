from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from schemas import CamelModel, UserOut
from services import crud
from token_module import create_access_token, get_current_user

router = APIRouter(tags=["auth"])


class RegisterIn(CamelModel):
    email: EmailStr
    password: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


def _norm(e: str) -> str: return (e or "").strip().lower()


def _login_or_create(db: Session, email: str, password: str) -> User:
    # first login creates the account with the free allotment
    user = crud.get_user_by_email(db, email)
    if not user:
        return crud.create_user(db, email=email, password=password)
    if not crud.verify_password(password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=401, detail="Inactive user")
    return user


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserOut)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    email = _norm(payload.email)
    if crud.get_user_by_email(db, email):
        raise HTTPException(status_code=409, detail="Email already registered")
    return crud.create_user(
        db,
        email=email,
        password=payload.password,
        username=payload.username,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = _login_or_create(db, _norm(payload.email), payload.password)
    token = create_access_token({"sub": user.email})
    return {"access_token": token, "token_type": "bearer"}


@router.post("/token", response_model=TokenOut)
def login_form(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = _login_or_create(db, _norm(form_data.username), form_data.password)
    token = create_access_token({"sub": user.email})
    return {"access_token": token, "token_type": "bearer"}


@router.get("/api/auth/user", response_model=UserOut)
def current_user(user: User = Depends(get_current_user)):
    return user
