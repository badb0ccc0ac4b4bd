from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from feedbacts.db.database import Base


class Alumni(Base):
    __tablename__ = "alumni"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", onupdate="CASCADE", ondelete="CASCADE"), unique=True, nullable=False)
    grad_year = Column(Integer)
    degree = Column(String(255))
    job_title = Column(String(255))
    contact = Column(String(50))
    company = Column(String(255))
    image = Column(String(500))

    user = relationship("User", back_populates="alumni")
