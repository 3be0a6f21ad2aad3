from sqlalchemy import Column, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from tai_report.db.base_class import Base


class Response(Base):
    __tablename__ = "responses"  # type: ignore

    user_id = Column(Integer, nullable=False, index=True)
    project_id = Column(
        Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True
    )
    version_id = Column(
        Integer, ForeignKey("questionnaire_versions.id"), nullable=True
    )

    # Relationships
    project = relationship("Project", back_populates="responses")
    version = relationship("QuestionnaireVersion")
    answers = relationship(
        "Answer",
        back_populates="response",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    report = relationship(
        "Report",
        back_populates="response",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Answer(Base):
    __tablename__ = "answers"  # type: ignore

    response_id = Column(
        Integer, ForeignKey("responses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False)
    option_id = Column(Integer, ForeignKey("options.id"), nullable=True)
    value = Column(Float, nullable=True)  # SCALE answers
    text = Column(Text, nullable=True)  # TEXT answers

    # Relationships
    response = relationship("Response", back_populates="answers")
    question = relationship("Question")
    option = relationship("Option")
