from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from blogcms.db.database import get_session
from blogcms.models.category import Category
from blogcms.models.post import Post
from blogcms.schemas.common import SuccessResponse
from blogcms.schemas.category import CategoryCreate, CategoryUpdate, CategoryResponse, CategoryWithUsage
from blogcms.core.security import require_admin

router = APIRouter()

def _get_category_or_404(session: Session, category_id: str) -> Category:
    category = session.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found"
        )
    return category

def _ensure_name_available(session: Session, name: str):
    if session.query(Category).filter(Category.name == name).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Category name already exists"
        )

@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED, summary="Create a new category")
def create_category(
    category: CategoryCreate,
    session: Session = Depends(get_session),
    _: dict = Depends(require_admin)
):
    """Create a new category"""
    _ensure_name_available(session, category.name)

    db_category = Category(name=category.name)
    session.add(db_category)
    session.commit()
    session.refresh(db_category)
    return db_category

@router.get("", response_model=List[CategoryWithUsage], summary="List all categories with their post count")
def list_categories(
    session: Session = Depends(get_session)
):
    """List all categories ordered by name"""
    rows = (
        session.query(Category, func.count(Post.id))
        .outerjoin(Post, Post.category_id == Category.id)
        .group_by(Category.id)
        .order_by(Category.name.asc())
        .all()
    )
    return [
        CategoryWithUsage(
            id=category.id,
            name=category.name,
            created_at=category.created_at,
            usage_count=usage_count
        )
        for category, usage_count in rows
    ]

@router.put("/{category_id}", response_model=SuccessResponse, summary="Rename a category")
def update_category(
    category_id: str,
    category_update: CategoryUpdate,
    session: Session = Depends(get_session),
    _: dict = Depends(require_admin)
):
    """Rename a category"""
    category = _get_category_or_404(session, category_id)

    if category_update.name != category.name:
        _ensure_name_available(session, category_update.name)
        category.name = category_update.name

    session.commit()
    return {"success": True}

@router.delete("/{category_id}", response_model=SuccessResponse, summary="Delete a category no post belongs to")
def delete_category(
    category_id: str,
    session: Session = Depends(get_session),
    _: dict = Depends(require_admin)
):
    """Delete a category, refused while any post references it"""
    category = _get_category_or_404(session, category_id)

    used_by_post = session.query(Post.id).filter(Post.category_id == category_id).first()
    if used_by_post:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "This category cannot be deleted because posts belong to it",
                "constraint": "foreign_key_constraint",
                "detail": "Category used by existing posts"
            }
        )

    session.delete(category)
    session.commit()
    return {"success": True}
