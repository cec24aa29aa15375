from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from events_api.core.config import Settings, get_settings
from events_api.database.db import get_db
from events_api.schemas.users import LoginResponse, UserCreate, UserLogin, UserRegisteredResponse
from events_api.services.auth import login, register_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserRegisteredResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: UserCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = register_user(
        db,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        bcrypt_rounds=settings.bcrypt_rounds,
    )
    return {"message": "User registered successfully", "user": user}


@router.post("/login", response_model=LoginResponse)
def login_user(
    payload: UserLogin,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    token, user = login(db, email=payload.email, password=payload.password, settings=settings)
    return {"message": "Login successful", "token": token, "user": user}
