from sqlalchemy import Column, String, Integer, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base

COMMENT_STATUSES = ("pending", "approved", "rejected")


class Comment(BaseModel, Base):
    __tablename__ = "comments"

    blog_id = Column(String(36), ForeignKey("blogs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    # Replies point at their parent comment
    parent_id = Column(String(36), ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)
    likes = Column(Integer, nullable=False, default=0)

    blog = relationship("Blog", back_populates="comments")

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_comments_status"),
    )

    def owner_id(self) -> str:
        return self.user_id
