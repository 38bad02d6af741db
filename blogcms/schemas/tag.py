from datetime import datetime
from pydantic import BaseModel, Field

class TagBase(BaseModel):
    """Tag base model"""
    name: str = Field(..., min_length=1, max_length=50, description="Tag name")

class TagCreate(TagBase):
    """Create tag request model"""
    pass

class TagUpdate(TagBase):
    """Update tag request model"""
    pass

class TagResponse(TagBase):
    """Tag response model"""
    id: str = Field(..., description="Tag ID")
    created_at: datetime = Field(..., description="Creation time")

    class Config:
        from_attributes = True

class TagWithUsage(TagResponse):
    """Tag annotated with the number of posts using it"""
    usage_count: int = Field(0, description="Usage count")
