"""
coursehub/orm/user.py
User accounts: self-registered students and administrators
"""
from enum import Enum

from sqlalchemy import Column, String, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship

from coursehub.orm.base import BaseModel


class UserRole(str, Enum):
    """Closed set of roles; self-registration always yields student"""
    student = "student"
    admin = "admin"


class User(BaseModel):
    __tablename__ = "users"

    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    student_id = Column(String(50), nullable=True)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.student, index=True)
    last_login = Column(DateTime, nullable=True)

    submissions = relationship("Submission", back_populates="student")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"

    def to_public_dict(self):
        """Fields safe to return to clients; never includes the hash."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value if self.role else None,
        }
