from __future__ import annotations

from enum import Enum

from sqlalchemy import Boolean, Column, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from tai_report.db.base_class import Base


class Indicator(str, Enum):
    """The eleven trustworthy-AI indicators every question is classified under."""

    ACCURACY = "ACCURACY"
    RELIABILITY = "RELIABILITY"
    SAFETY = "SAFETY"
    RESILIENCE = "RESILIENCE"
    EXPLAINABILITY = "EXPLAINABILITY"
    AUTONOMY = "AUTONOMY"
    PRIVACY = "PRIVACY"
    SECURITY = "SECURITY"
    TRANSPARENCY = "TRANSPARENCY"
    ACCOUNTABILITY = "ACCOUNTABILITY"
    FAIRNESS = "FAIRNESS"


class QuestionType(str, Enum):
    SCALE = "SCALE"  # numeric value 0-100, -1 for N/A
    SINGLE_CHOICE = "SINGLE_CHOICE"  # one option, option carries the value
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"  # one answer row per selected option
    TEXT = "TEXT"  # free text, never scored


class QuestionnaireVersion(Base):
    __tablename__ = "questionnaire_versions"  # type: ignore

    group_name = Column(String, nullable=False)  # e.g. pre-, mid-, post-modelling
    version_number = Column(Integer, nullable=False, default=1)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    questions = relationship(
        "Question", back_populates="version", cascade="all, delete-orphan"
    )


class Question(Base):
    __tablename__ = "questions"  # type: ignore
    __table_args__ = (Index("ix_questions_version_order", "version_id", "order"),)

    version_id = Column(
        Integer, ForeignKey("questionnaire_versions.id", ondelete="CASCADE"), nullable=False
    )
    text = Column(Text, nullable=False)
    indicator = Column(SQLEnum(Indicator), nullable=False, index=True)
    # Stored as a plain string so legacy/unknown kinds surface as scoring issues
    type = Column(String, nullable=False, default=QuestionType.SCALE.value)
    order = Column(Integer, nullable=False)
    required = Column(Boolean, nullable=False, default=True)

    version = relationship("QuestionnaireVersion", back_populates="questions")
    options = relationship(
        "Option",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="Option.order",
    )


class Option(Base):
    __tablename__ = "options"  # type: ignore

    question_id = Column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    text = Column(String, nullable=False)
    value = Column(Float, nullable=True)  # 0-100, -1 marks "not applicable"
    order = Column(Integer, nullable=False, default=0)

    question = relationship("Question", back_populates="options")
