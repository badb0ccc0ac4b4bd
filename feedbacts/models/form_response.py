from sqlalchemy import Column, Integer, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from feedbacts.db.database import Base


class FormResponse(Base):
    __tablename__ = "form_responses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    form_id = Column(Integer, ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # {question_id: answer}
    answers = Column(JSON, nullable=False)
    submitted_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("form_id", "user_id", name="uq_form_response_user"),)

    form = relationship("Form", back_populates="responses")
    user = relationship("User", back_populates="responses")
