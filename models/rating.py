from sqlalchemy import Column, String, Integer, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class Rating(BaseModel, Base):
    __tablename__ = "ratings"

    blog_id = Column(String(36), ForeignKey("blogs.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    rating_value = Column(Integer, nullable=False)

    blog = relationship("Blog", back_populates="ratings")

    __table_args__ = (
        # One rating per user per blog
        UniqueConstraint("blog_id", "user_id", name="uq_ratings_blog_user"),
        CheckConstraint("rating_value BETWEEN 1 AND 5", name="ck_ratings_value_range"),
    )

    def owner_id(self) -> str:
        return self.user_id
