from datetime import datetime, UTC
from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column
from blogcms.db.database import Base
import uuid

class Tag(Base):
    """Tag model"""
    __tablename__ = "tags"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(50), unique=True)  # tag name must be unique
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
