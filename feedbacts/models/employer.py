from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from feedbacts.db.database import Base


class Employer(Base):
    __tablename__ = "employers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", onupdate="CASCADE", ondelete="CASCADE"), unique=True, nullable=False)
    company_name = Column(String(255))
    industry = Column(String(255))
    location = Column(String(255))
    contact = Column(String(50))

    user = relationship("User", back_populates="employer")
