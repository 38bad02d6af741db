from sqlalchemy import Column, String, Text, Enum, DateTime, ForeignKey
from blogcms.db.database import Base
from datetime import datetime, UTC
from enum import Enum as PyEnum
import uuid

class PostStatus(str, PyEnum):
    """Post status"""
    DRAFT = "draft"          # Draft, only shown in the admin
    PUBLISHED = "published"  # Published, visible to everyone

class Post(Base):
    """Post model"""
    __tablename__ = "posts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    summary = Column(Text, nullable=False, default="")
    content = Column(Text, nullable=False)
    cover_url = Column(String, nullable=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True)
    status = Column(Enum(PostStatus), nullable=False, default=PostStatus.DRAFT)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
