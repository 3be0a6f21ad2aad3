from sqlalchemy import JSON, Column, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from tai_report.db.base_class import Base


class Report(Base):
    __tablename__ = "reports"  # type: ignore

    response_id = Column(
        Integer,
        ForeignKey("responses.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    overall_score = Column(Float, nullable=False, default=0.0)
    scores = Column(JSON, nullable=False)  # indicator -> 0..1 or -1 (N/A)
    analysis_text = Column(Text, nullable=False)
    weight_snapshot = Column(JSON, nullable=True)  # normalized weights used, or null
    llm_meta = Column(JSON, nullable=True)  # model/provider/attempt metadata

    response = relationship("Response", back_populates="report")
    images = relationship(
        "ReportImage",
        back_populates="report",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ReportImage.id",
    )


class ReportImage(Base):
    __tablename__ = "report_images"  # type: ignore

    report_id = Column(
        Integer, ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url = Column(String, nullable=False)
    caption = Column(String, nullable=True)

    report = relationship("Report", back_populates="images")
