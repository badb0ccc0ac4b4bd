from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLAEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from feedbacts.db.database import Base
import enum


class UserRole(enum.Enum):
    admin = "admin"
    student = "student"
    instructor = "instructor"
    alumni = "alumni"
    employer = "employer"


class UserStatus(enum.Enum):
    pending = "pending"
    active = "active"
    inactive = "inactive"
    suspended = "suspended"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(SQLAEnum(UserRole, native_enum=False), nullable=False)
    status = Column(SQLAEnum(UserStatus, native_enum=False), default=UserStatus.pending, nullable=False)
    registration_date = Column(DateTime, default=datetime.utcnow, nullable=False)

    # role profiles; a graduated user keeps the student row next to the alumni row
    student = relationship("Student", back_populates="user", uselist=False)
    instructor = relationship("Instructor", back_populates="user", uselist=False)
    alumni = relationship("Alumni", back_populates="user", uselist=False)
    employer = relationship("Employer", back_populates="user", uselist=False)

    forms = relationship("Form", back_populates="creator")
    responses = relationship("FormResponse", back_populates="user")
