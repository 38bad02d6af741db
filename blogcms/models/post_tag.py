from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column
from blogcms.db.database import Base

class PostTag(Base):
    """Post-tag association, unique per (post, tag) pair"""
    __tablename__ = "posts_tags"

    post_id: Mapped[str] = mapped_column(String(36), ForeignKey("posts.id"), primary_key=True)
    tag_id: Mapped[str] = mapped_column(String(36), ForeignKey("tags.id"), primary_key=True)
