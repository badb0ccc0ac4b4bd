from sqlalchemy import Column, Integer, String, Date, ForeignKey
from sqlalchemy.orm import relationship
from feedbacts.db.database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", onupdate="CASCADE", ondelete="CASCADE"), unique=True, nullable=False)
    student_number = Column(String(50))
    program_id = Column(Integer, ForeignKey("course_management.id", ondelete="SET NULL"), nullable=True)
    previous_program_id = Column(Integer, ForeignKey("course_management.id", ondelete="SET NULL"), nullable=True)
    academic_year = Column(Integer, nullable=True)
    promotion_date = Column(Date, nullable=True)
    contact_number = Column(String(50))
    image = Column(String(500))

    user = relationship("User", back_populates="student")
    program = relationship("Program", foreign_keys=[program_id])
    previous_program = relationship("Program", foreign_keys=[previous_program_id])
    enrollments = relationship("StudentEnrollment", back_populates="student", cascade="all, delete-orphan")
