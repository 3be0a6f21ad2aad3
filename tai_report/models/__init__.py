from .project import Project, ProjectIndicatorPriority
from .questionnaire import Indicator, Option, Question, QuestionnaireVersion, QuestionType
from .report import Report, ReportImage
from .response import Answer, Response

__all__ = [
    "Indicator",
    "QuestionType",
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
