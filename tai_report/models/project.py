from sqlalchemy import Column, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from tai_report.db.base_class import Base
from tai_report.models.questionnaire import Indicator


class Project(Base):
    __tablename__ = "projects"  # type: ignore

    user_id = Column(Integer, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    priorities = relationship(
        "ProjectIndicatorPriority",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectIndicatorPriority.rank",
    )
    responses = relationship("Response", back_populates="project")


class ProjectIndicatorPriority(Base):
    __tablename__ = "project_indicator_priorities"  # type: ignore
    __table_args__ = (
        UniqueConstraint("project_id", "indicator", name="uq_project_indicator"),
    )

    project_id = Column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    indicator = Column(SQLEnum(Indicator), nullable=False)
    rank = Column(Integer, nullable=False)
    weight = Column(Float, nullable=True)  # user supplied, usually pre-normalized

    project = relationship("Project", back_populates="priorities")
