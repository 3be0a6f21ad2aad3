# Import all the models, so that Base has them before create_all() runs
from tai_report.db.base_class import Base
from tai_report.models.project import Project, ProjectIndicatorPriority
from tai_report.models.questionnaire import Option, Question, QuestionnaireVersion
from tai_report.models.report import Report, ReportImage
from tai_report.models.response import Answer, Response

__all__ = [  # noqa: F401
    "Base",
    "QuestionnaireVersion",
    "Question",
    "Option",
    "Project",
    "ProjectIndicatorPriority",
    "Response",
    "Answer",
    "Report",
    "ReportImage",
]
