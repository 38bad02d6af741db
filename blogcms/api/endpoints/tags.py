from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from blogcms.db.database import get_session
from blogcms.models.tag import Tag
from blogcms.models.post_tag import PostTag
from blogcms.schemas.common import SuccessResponse
from blogcms.schemas.tag import TagCreate, TagUpdate, TagResponse, TagWithUsage
from blogcms.core.security import require_admin

router = APIRouter()

def _get_tag_or_404(session: Session, tag_id: str) -> Tag:
    tag = session.query(Tag).filter(Tag.id == tag_id).first()
    if not tag:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tag not found"
        )
    return tag

@router.post("", response_model=TagResponse, status_code=status.HTTP_201_CREATED, summary="Create a new tag")
def create_tag(
    tag: TagCreate,
    session: Session = Depends(get_session),
    _: dict = Depends(require_admin)
):
    """Create a new tag"""
    # Check if tag name already exists
    existing_tag = session.query(Tag).filter(Tag.name == tag.name).first()
    if existing_tag:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tag name already exists"
        )

    db_tag = Tag(name=tag.name)
    session.add(db_tag)
    session.commit()
    session.refresh(db_tag)
    return db_tag

@router.get("", response_model=List[TagWithUsage], summary="List all tags with their usage count")
def list_tags(
    session: Session = Depends(get_session)
):
    """List all tags ordered by name, each with the number of posts using it"""
    rows = (
        session.query(Tag, func.count(PostTag.post_id))
        .outerjoin(PostTag, PostTag.tag_id == Tag.id)
        .group_by(Tag.id)
        .order_by(Tag.name.asc())
        .all()
    )
    return [
        TagWithUsage(id=tag.id, name=tag.name, created_at=tag.created_at, usage_count=usage_count)
        for tag, usage_count in rows
    ]

@router.get("/{tag_id}", response_model=TagResponse, summary="Get a specific tag")
def get_tag(
    tag_id: str,
    session: Session = Depends(get_session)
):
    """Get a specific tag"""
    return _get_tag_or_404(session, tag_id)

@router.put("/{tag_id}", response_model=SuccessResponse, summary="Rename a tag")
def update_tag(
    tag_id: str,
    tag_update: TagUpdate,
    session: Session = Depends(get_session),
    _: dict = Depends(require_admin)
):
    """Rename a tag"""
    tag = _get_tag_or_404(session, tag_id)

    # Check if new name already exists
    if tag_update.name != tag.name:
        existing_tag = session.query(Tag).filter(Tag.name == tag_update.name).first()
        if existing_tag:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Tag name already exists"
            )
        tag.name = tag_update.name

    session.commit()
    return {"success": True}

@router.delete("/{tag_id}", response_model=SuccessResponse, summary="Delete a tag not used by any post")
def delete_tag(
    tag_id: str,
    session: Session = Depends(get_session),
    _: dict = Depends(require_admin)
):
    """Delete a tag, refused while any post still uses it"""
    tag = _get_tag_or_404(session, tag_id)

    used_by_post = session.query(PostTag.post_id).filter(PostTag.tag_id == tag_id).first()
    if used_by_post:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "This tag cannot be deleted because posts use it",
                "constraint": "foreign_key_constraint",
                "detail": "Tag used by existing posts"
            }
        )

    session.delete(tag)
    session.commit()
    return {"success": True}
