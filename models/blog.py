import math
import re

from sqlalchemy import (
    Column,
    String,
    Integer,
    ForeignKey,
    Text,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base

BLOG_STATUSES = ("draft", "published", "archived")
WORDS_PER_MINUTE = 200
EXCERPT_LENGTH = 200


def generate_slug(title: str) -> str:
    slug = re.sub(r"[^a-z0-9 -]", "", title.lower())
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def reading_time_for(content: str) -> int:
    words = len(content.split())
    return math.ceil(words / WORDS_PER_MINUTE)


class Blog(BaseModel, Base):
    __tablename__ = "blogs"

    title = Column(String(200), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    content = Column(Text, nullable=False)
    excerpt = Column(String(500), nullable=True)
    status = Column(String(16), nullable=False, default="draft")
    featured_image = Column(String(500), nullable=False, default="")
    reading_time = Column(Integer, nullable=False, default=0)
    views = Column(Integer, nullable=False, default=0)
    likes = Column(Integer, nullable=False, default=0)

    author_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    author = relationship("User", back_populates="blogs")
    comments = relationship("Comment", back_populates="blog", passive_deletes=True)
    ratings = relationship("Rating", back_populates="blog", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("status IN ('draft', 'published', 'archived')", name="ck_blogs_status"),
        Index("ix_blogs_status_created", "status", "created_at"),
    )

    def owner_id(self) -> str:
        return self.author_id

    def set_content(self, content: str) -> None:
        """Store content and derive reading time, and an excerpt when none was given."""
        self.content = content
        self.reading_time = reading_time_for(content)
        if not self.excerpt:
            self.excerpt = content if len(content) <= EXCERPT_LENGTH else content[:EXCERPT_LENGTH] + "..."
