from datetime import datetime
from pydantic import BaseModel, Field

class CategoryBase(BaseModel):
    """Category base model"""
    name: str = Field(..., min_length=1, max_length=50, description="Category name")

class CategoryCreate(CategoryBase):
    """Create category request model"""
    pass

class CategoryUpdate(CategoryBase):
    """Update category request model"""
    pass

class CategoryResponse(CategoryBase):
    """Category response model"""
    id: str = Field(..., description="Category ID")
    created_at: datetime = Field(..., description="Creation time")

    class Config:
        from_attributes = True

class CategoryWithUsage(CategoryResponse):
    """Category annotated with the number of posts referencing it"""
    usage_count: int = Field(0, description="Number of posts in this category")
