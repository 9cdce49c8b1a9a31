# server/api/sweets.py

import logging
from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from fastapi import APIRouter, HTTPException, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.security import TokenUser, get_current_user, require_admin
from models.sweet import Sweet
from database import get_db


logger = logging.getLogger(__name__)


# -------------------------------
# Router & Schemas
# -------------------------------

router = APIRouter(prefix="/api/sweets", tags=["sweets"])


class SweetRequest(BaseModel):
    """
    Request schema shared by create and update.
    """
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    price: float = Field(ge=0, allow_inf_nan=False)
    quantity: int = Field(default=0, ge=0, strict=True)

    @field_validator("name", "category", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("price", mode="before")
    @classmethod
    def reject_bool_price(cls, v):
        if isinstance(v, bool):
            raise ValueError("Price must be a number")
        return v


class RestockRequest(BaseModel):
    quantity: int = Field(ge=1, strict=True)


def get_sweet_or_404(db: Session, sweet_id: int) -> Sweet:
    sweet = db.get(Sweet, sweet_id)
    if not sweet:
        raise HTTPException(status_code=404, detail="Sweet not found")
    return sweet


def ensure_unique_name(db: Session, name: str):
    if db.query(Sweet).filter(Sweet.name == name).first():
        raise HTTPException(status_code=400, detail="Sweet with this name already exists")


def commit_or_400(db: Session):
    # unique index can still trip if two writers race past ensure_unique_name
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Sweet with this name already exists")


# -------------------------------
# Inventory Endpoints
# -------------------------------

@router.post("", status_code=status.HTTP_201_CREATED)
def create_sweet(req: SweetRequest, db: Session = Depends(get_db), admin: TokenUser = Depends(require_admin)):
    ensure_unique_name(db, req.name)

    sweet = Sweet(name=req.name, category=req.category, price=req.price, quantity=req.quantity)
    db.add(sweet)
    commit_or_400(db)
    db.refresh(sweet)

    logger.info("Admin %s created sweet %r (id=%s)", admin.id, sweet.name, sweet.id)
    return {"message": "Sweet created successfully", "sweet": sweet.to_dict()}


@router.get("")
def list_sweets(db: Session = Depends(get_db), _: TokenUser = Depends(get_current_user)):
    sweets = db.query(Sweet).order_by(Sweet.created_at.desc(), Sweet.id.desc()).all()
    return {"sweets": [s.to_dict() for s in sweets]}


@router.get("/search")
def search_sweets(
    name: str | None = Query(None),
    category: str | None = Query(None),
    min_price: float | None = Query(None, alias="minPrice", ge=0),
    max_price: float | None = Query(None, alias="maxPrice", ge=0),
    db: Session = Depends(get_db),
    _: TokenUser = Depends(get_current_user),
):
    """
    Filters sweets by case-insensitive substring on name and category
    and by an inclusive price range. Empty filters are ignored.
    """
    query = db.query(Sweet)

    if name and name.strip():
        query = query.filter(Sweet.name.icontains(name.strip(), autoescape=True))
    if category and category.strip():
        query = query.filter(Sweet.category.icontains(category.strip(), autoescape=True))
    if min_price is not None:
        query = query.filter(Sweet.price >= min_price)
    if max_price is not None:
        query = query.filter(Sweet.price <= max_price)

    sweets = query.order_by(Sweet.created_at.desc(), Sweet.id.desc()).all()
    return {"sweets": [s.to_dict() for s in sweets]}


@router.put("/{sweet_id}")
def update_sweet(
    sweet_id: int,
    req: SweetRequest,
    db: Session = Depends(get_db),
    admin: TokenUser = Depends(require_admin),
):
    sweet = get_sweet_or_404(db, sweet_id)

    if req.name != sweet.name:
        ensure_unique_name(db, req.name)

    sweet.name = req.name
    sweet.category = req.category
    sweet.price = req.price
    sweet.quantity = req.quantity
    commit_or_400(db)
    db.refresh(sweet)

    logger.info("Admin %s updated sweet id=%s", admin.id, sweet.id)
    return {"message": "Sweet updated successfully", "sweet": sweet.to_dict()}


@router.delete("/{sweet_id}")
def delete_sweet(sweet_id: int, db: Session = Depends(get_db), admin: TokenUser = Depends(require_admin)):
    sweet = get_sweet_or_404(db, sweet_id)
    db.delete(sweet)
    db.commit()

    logger.info("Admin %s deleted sweet id=%s", admin.id, sweet_id)
    return {"message": "Sweet deleted successfully"}


# -------------------------------
# Stock Endpoints
# -------------------------------

@router.post("/{sweet_id}/purchase")
def purchase_sweet(sweet_id: int, db: Session = Depends(get_db), user: TokenUser = Depends(get_current_user)):
    sweet = get_sweet_or_404(db, sweet_id)

    # single conditional UPDATE so concurrent buyers cannot take stock below zero
    updated = (
        db.query(Sweet)
        .filter(Sweet.id == sweet_id, Sweet.quantity > 0)
        .update(
            {Sweet.quantity: Sweet.quantity - 1, Sweet.updated_at: datetime.now()},
            synchronize_session=False,
        )
    )
    if not updated:
        db.rollback()
        raise HTTPException(status_code=400, detail="Sweet is out of stock")

    db.commit()
    db.refresh(sweet)

    logger.info("User %s purchased sweet id=%s, %s left", user.id, sweet.id, sweet.quantity)
    return {"message": "Purchase successful", "sweet": sweet.to_dict()}


@router.post("/{sweet_id}/restock")
def restock_sweet(
    sweet_id: int,
    req: RestockRequest,
    db: Session = Depends(get_db),
    admin: TokenUser = Depends(require_admin),
):
    sweet = get_sweet_or_404(db, sweet_id)

    db.query(Sweet).filter(Sweet.id == sweet_id).update(
        {Sweet.quantity: Sweet.quantity + req.quantity, Sweet.updated_at: datetime.now()},
        synchronize_session=False,
    )
    db.commit()
    db.refresh(sweet)

    logger.info("Admin %s restocked sweet id=%s by %s", admin.id, sweet.id, req.quantity)
    return {"message": "Restock successful", "sweet": sweet.to_dict()}
