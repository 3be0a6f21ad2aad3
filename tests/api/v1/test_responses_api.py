"""API tests for submitting, replacing and deleting responses."""

import pytest
from fastapi.testclient import TestClient

from tai_report.db.session import get_db
from tai_report.main import app
from tai_report.models import Indicator, QuestionType

client = TestClient(app)


@pytest.fixture(autouse=True)
def override_db(db_session):
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def questionnaire(survey):
    version = survey.version()
    scale = survey.question(version, Indicator.ACCURACY, order=1)
    choice = survey.question(
        version,
        Indicator.FAIRNESS,
        QuestionType.MULTIPLE_CHOICE,
        order=2,
        options=[("Bias audit", 100.0), ("Group metrics", 60.0)],
    )
    return {"version": version, "scale": scale, "choice": choice}


def _full_answers(questionnaire):
    return [
        {"questionId": questionnaire["scale"].id, "value": 65},
        {"questionId": questionnaire["choice"].id, "optionId": questionnaire["choice"].options[0].id},
        {"questionId": questionnaire["choice"].id, "optionId": questionnaire["choice"].options[1].id},
    ]


def test_submit_response(questionnaire):
    res = client.post(
        "/api/v1/responses",
        json={
            "userId": 3,
            "versionId": questionnaire["version"].id,
            "answers": _full_answers(questionnaire),
        },
    )

    assert res.status_code == 201
    body = res.json()
    assert body["userId"] == 3
    assert body["versionId"] == questionnaire["version"].id
    assert body["answerCount"] == 3


def test_submit_invalid_answers(questionnaire):
    res = client.post(
        "/api/v1/responses",
        json={
            "userId": 3,
            "versionId": questionnaire["version"].id,
            "answers": [{"questionId": questionnaire["scale"].id, "value": 101}],
        },
    )

    assert res.status_code == 400
    error = res.json()["error"]
    assert error["category"] == "validation"
    codes = [issue["code"] for issue in error["details"]["issues"]]
    assert codes == ["value_out_of_range", "missing_answer"]


def test_submit_requires_answers_field():
    res = client.post("/api/v1/responses", json={"userId": 3})

    assert res.status_code == 422


def test_replace_answers(questionnaire, survey):
    response = survey.response(questionnaire["version"], [(questionnaire["scale"], {"value": 10.0})])

    res = client.patch(
        f"/api/v1/responses/{response.id}",
        json={"answers": _full_answers(questionnaire)},
    )

    assert res.status_code == 200
    assert res.json()["answerCount"] == 3


def test_replace_answers_unknown_response(db_engine):
    res = client.patch("/api/v1/responses/404", json={"answers": []})

    assert res.status_code == 404


def test_delete_response(questionnaire, survey):
    response = survey.response(questionnaire["version"])

    res = client.delete(f"/api/v1/responses/{response.id}")

    assert res.status_code == 204
    assert client.delete(f"/api/v1/responses/{response.id}").status_code == 404
