from models.base_model import Base, BaseModel
from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.orm import relationship

ROLE_ADMIN = "Admin"
ROLE_READER = "Reader"
ROLES = (ROLE_ADMIN, ROLE_READER)


class User(BaseModel, Base):
    __tablename__ = "users"
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    # Nullable for accounts created through an OAuth provider
    password_hash = Column(String(255), nullable=True)
    role = Column(String(16), nullable=False, default=ROLE_READER)
    google_id = Column(String(255), nullable=True, unique=True)
    linkedin_id = Column(String(255), nullable=True, unique=True)
    avatar = Column(String(500), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    # Currently valid refresh token; cleared on logout/deactivation
    refresh_token = Column(Text, nullable=True)

    blogs = relationship("Blog", back_populates="author", passive_deletes=True)

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def __repr__(self):
        return f"<User {self.email} role={self.role}>"
