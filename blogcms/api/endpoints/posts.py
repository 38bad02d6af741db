import uuid
from collections import defaultdict
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from blogcms.db.database import get_session
from blogcms.models.category import Category
from blogcms.models.post import Post, PostStatus
from blogcms.models.post_tag import PostTag
from blogcms.models.tag import Tag
from blogcms.schemas.common import SuccessResponse
from blogcms.schemas.post import PostCreate, PostCreated, PostUpdate, PostResponse
from blogcms.services.tag_reconciler import TagReconciler, TagReconciliationError
from blogcms.core.security import require_admin

router = APIRouter()

# Post columns an update may set back to null
NULLABLE_FIELDS = {"cover_url", "category_id"}


def _get_post_or_404(session: Session, post_id: str) -> Post:
    post = session.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found"
        )
    return post


def _tags_by_post(session: Session, post_ids: List[str]) -> Dict[str, List[dict]]:
    """Load the tags of all given posts in one joined query"""
    if not post_ids:
        return {}
    rows = (
        session.query(PostTag.post_id, Tag.id, Tag.name)
        .join(Tag, Tag.id == PostTag.tag_id)
        .filter(PostTag.post_id.in_(post_ids))
        .order_by(Tag.name.asc())
        .all()
    )
    tags = defaultdict(list)
    for post_id, tag_id, tag_name in rows:
        tags[post_id].append({"id": tag_id, "name": tag_name})
    return tags


def _flatten(post: Post, category: Optional[Category], tags: List[dict]) -> dict:
    return {
        "id": post.id,
        "created_at": post.created_at,
        "title": post.title,
        "summary": post.summary,
        "content": post.content,
        "cover_url": post.cover_url,
        "category_id": post.category_id,
        "status": post.status or PostStatus.DRAFT,
        "category": {"id": category.id, "name": category.name} if category else None,
        "tags": tags
    }


def _reconcile_tags(session: Session, post_id: str, tag_ids) -> None:
    """Reconcile tags and commit, rolling back the whole request on failure"""
    try:
        TagReconciler(session).reconcile(post_id, tag_ids)
    except TagReconciliationError as exc:
        session.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=exc.message
        )
    session.commit()


@router.post("", response_model=PostCreated, status_code=status.HTTP_201_CREATED, summary="Create a new post with its tags")
def create_post(
    post: PostCreate,
    session: Session = Depends(get_session),
    _: dict = Depends(require_admin)
):
    """Create a new post and associate its tags"""
    new_post = Post(
        id=str(uuid.uuid4()),
        **post.model_dump(exclude={"tag_ids"})
    )
    session.add(new_post)
    session.flush()  # the post row must exist before associations reference it

    _reconcile_tags(session, new_post.id, post.tag_ids)
    return {"success": True, "id": new_post.id}


@router.get("", response_model=List[PostResponse], summary="List all posts, newest first")
def list_posts(
    status_filter: Optional[PostStatus] = Query(default=None, alias="status"),
    session: Session = Depends(get_session)
):
    """List all posts with their category and tags"""
    query = (
        session.query(Post, Category)
        .outerjoin(Category, Category.id == Post.category_id)
        .order_by(Post.created_at.desc())
    )
    if status_filter:
        query = query.filter(Post.status == status_filter)

    rows = query.all()
    tags = _tags_by_post(session, [post.id for post, _category in rows])
    return [_flatten(post, category, tags.get(post.id, [])) for post, category in rows]


@router.get("/{post_id}", response_model=PostResponse, summary="Get a specific post")
def get_post(
    post_id: str,
    session: Session = Depends(get_session)
):
    """Get a specific post with its category and tags"""
    row = (
        session.query(Post, Category)
        .outerjoin(Category, Category.id == Post.category_id)
        .filter(Post.id == post_id)
        .first()
    )
    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found"
        )

    post, category = row
    tags = _tags_by_post(session, [post.id])
    return _flatten(post, category, tags.get(post.id, []))


@router.put("/{post_id}", response_model=SuccessResponse, summary="Update a post, including its tags")
def update_post(
    post_id: str,
    post_update: PostUpdate,
    session: Session = Depends(get_session),
    _: dict = Depends(require_admin)
):
    """Update a post

    Only the fields present in the body are written. tag_ids is always
    reconciled: leaving it out removes every tag from the post.
    """
    post = _get_post_or_404(session, post_id)

    for field, value in post_update.model_dump(exclude_unset=True, exclude={"tag_ids"}).items():
        if value is None and field not in NULLABLE_FIELDS:
            continue
        setattr(post, field, value)
    session.flush()

    _reconcile_tags(session, post_id, post_update.tag_ids)
    return {"success": True}


@router.delete("/{post_id}", response_model=SuccessResponse, summary="Delete a post and its tag associations")
def delete_post(
    post_id: str,
    session: Session = Depends(get_session),
    _: dict = Depends(require_admin)
):
    """Delete a post and its tag associations"""
    post = _get_post_or_404(session, post_id)

    session.query(PostTag).filter(PostTag.post_id == post_id).delete(synchronize_session=False)
    session.delete(post)
    session.commit()
    return {"success": True}
