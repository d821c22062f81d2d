"""
coursehub/orm/material.py
Uploaded course materials (slides, handouts, archives)
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from coursehub.orm.base import Base, new_id, utcnow


class Material(Base):
    __tablename__ = "course_materials"

    id = Column(String(36), primary_key=True, default=new_id)
    course_id = Column(
        String(36),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    chapter_id = Column(
        String(36),
        ForeignKey("course_chapters.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    title = Column(String(200), nullable=False)
    type = Column(String(50), nullable=False)
    file_url = Column(String(500), nullable=False)
    file_size = Column(Integer, nullable=False)
    uploaded_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    course = relationship("Course", back_populates="materials")
    chapter = relationship("Chapter", back_populates="materials")

    def __repr__(self):
        return f"<Material(id={self.id}, course_id={self.course_id}, title='{self.title}')>"
