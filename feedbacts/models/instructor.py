from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from feedbacts.db.database import Base


class Instructor(Base):
    __tablename__ = "instructors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", onupdate="CASCADE", ondelete="CASCADE"), unique=True, nullable=False)
    instructor_number = Column(String(50))
    department = Column(String(100))

    user = relationship("User", back_populates="instructor")
