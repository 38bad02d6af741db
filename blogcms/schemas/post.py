from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Union
from blogcms.models.post import PostStatus

# tag_ids may arrive as a list (possibly with duplicates), a single id or nothing
TagIds = Optional[Union[List[str], str]]

class PostBase(BaseModel):
    """Post base model"""
    title: str = Field(..., min_length=1, max_length=200)
    summary: str = Field(default="", description="Short summary shown in listings")
    content: str = Field(..., min_length=1)
    cover_url: Optional[str] = Field(default=None, description="Cover image reference")
    category_id: Optional[str] = Field(default=None, description="Category ID")
    status: PostStatus = PostStatus.DRAFT

class PostCreate(PostBase):
    """Create post request model"""
    tag_ids: TagIds = Field(default=None, description="Tag ID list")

class PostUpdate(BaseModel):
    """Update post request model, only fields present in the body are written"""
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    summary: Optional[str] = None
    content: Optional[str] = Field(default=None, min_length=1)
    cover_url: Optional[str] = None
    category_id: Optional[str] = None
    status: Optional[PostStatus] = None
    tag_ids: TagIds = Field(default=None, description="Tag ID list, absent clears the post's tags")

class CategoryRef(BaseModel):
    id: str
    name: str

class TagRef(BaseModel):
    id: str
    name: str

class PostResponse(PostBase):
    """Flattened post with its category and tags"""
    id: str
    created_at: datetime
    category: Optional[CategoryRef] = None
    tags: List[TagRef] = []

class PostCreated(BaseModel):
    success: bool = True
    id: str
