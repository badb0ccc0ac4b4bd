from sqlalchemy import Column, Integer, String, Date, Time, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from feedbacts.db.database import Base


class FormAssignment(Base):
    __tablename__ = "form_assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    form_id = Column(Integer, ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("form_id", "user_id", name="uq_form_assignment_user"),)

    form = relationship("Form", back_populates="assignments")
    user = relationship("User")


class FormDeployment(Base):
    __tablename__ = "form_deployments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    form_id = Column(Integer, ForeignKey("forms.id", ondelete="CASCADE"), unique=True, nullable=False)
    deployed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    target_filters = Column(JSON)
    deployment_status = Column(String(20), default="active", nullable=False)
    deployed_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    form = relationship("Form", back_populates="deployment")
