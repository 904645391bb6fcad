"""
Read-only question catalog loading.

The catalog is authored and validated elsewhere; this module only parses the
file shape into domain objects. Question order in the file is preserved,
because the sequencer derives the audit order from it.

File shape (camelCase keys are accepted as well):

    {
      "departments": [
        {
          "id": "produce",
          "name": "Produce",
          "questions": [
            {"id": "q1", "risk_category": "Safety", "text": "...",
             "criteria": "...", "answer_type": "yes_no_partial",
             "points_yes": 10, "points_partial": 5, "points_no": 0}
          ]
        }
      ]
    }
"""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.audit.exceptions import CatalogError
from src.audit.models import AnswerType, Department, Question


class QuestionRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    risk_category: str = Field(alias="riskCategory")
    text: str
    criteria: str = ""
    answer_type: AnswerType = Field(default=AnswerType.YES_NO, alias="answerType")
    points_yes: int = Field(default=0, alias="pointsYes")
    points_partial: int = Field(default=0, alias="pointsPartial")
    points_no: int = Field(default=0, alias="pointsNo")

    def to_domain(self) -> Question:
        return Question(
            id=self.id,
            risk_category=self.risk_category,
            text=self.text,
            criteria=self.criteria,
            answer_type=self.answer_type,
            points_yes=self.points_yes,
            points_partial=self.points_partial,
            points_no=self.points_no,
        )


class DepartmentRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    icon: str = ""
    questions: list[QuestionRecord] = Field(default_factory=list)

    def to_domain(self) -> Department:
        return Department(
            id=self.id,
            name=self.name,
            icon=self.icon,
            questions=tuple(q.to_domain() for q in self.questions),
        )


class CatalogFile(BaseModel):
    departments: list[DepartmentRecord] = Field(default_factory=list)


def load_catalog(path: Path | str) -> list[Department]:
    """
    Load departments from a catalog file.

    Raises:
        CatalogError: file missing, not JSON, or not catalog-shaped
    """
    path = Path(path)
    if not path.exists():
        raise CatalogError(f"Catalog file not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        catalog = CatalogFile.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise CatalogError(f"Could not read catalog {path}: {exc}") from exc

    departments = [d.to_domain() for d in catalog.departments]
    logger.debug("Loaded {} departments from {}", len(departments), path)
    return departments


def find_department(departments: list[Department], department_id: str) -> Department | None:
    for dept in departments:
        if dept.id == department_id:
            return dept
    return None
