# server/api/auth.py

import logging
from pydantic import BaseModel, EmailStr, Field, field_validator
from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from database import get_db
from models.user import User as UserModel, ROLE_USER
from core.security import (
    TokenUser,
    require_secret,
    verify_password,
    get_password_hash,
    create_access_token,
    get_current_user,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3)
    email: EmailStr
    password: str = Field(min_length=6)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v):
        return v.strip() if isinstance(v, str) else v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


def authenticate_user(db: Session, email: str, password: str):
    user = db.query(UserModel).filter(UserModel.email == email.lower()).first()
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user


def _auth_response(user: UserModel, message: str) -> dict:
    return {
        "message": message,
        "token": create_access_token(user),
        "user": user.to_dict(),
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(req: RegisterRequest, db: Session = Depends(get_db)):
    # checked before any write
    require_secret()

    email = req.email.lower()
    user_exists = db.query(UserModel).filter(
        or_(UserModel.email == email, UserModel.username == req.username)
    ).first()
    if user_exists:
        raise HTTPException(status_code=400, detail="User with this email or username already exists")

    new_user = UserModel(
        username=req.username,
        email=email,
        hashed_password=get_password_hash(req.password),
        role=ROLE_USER,
    )
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="User with this email or username already exists")
    db.refresh(new_user)

    logger.info("Registered user %s (id=%s)", new_user.username, new_user.id)
    return _auth_response(new_user, "User registered successfully")


@router.post("/login")
def login(req: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate_user(db, req.email, req.password)
    if not user:
        logger.info("Failed login attempt for %s", req.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )
    return _auth_response(user, "Login successful")


@router.get("/me")
def read_users_me(current_user: TokenUser = Depends(get_current_user), db: Session = Depends(get_db)):
    user = db.get(UserModel, current_user.id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"user": user.to_dict()}
