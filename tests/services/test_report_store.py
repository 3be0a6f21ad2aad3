"""Tests for the SQLAlchemy-backed report store."""

import pytest
from sqlalchemy import func, select

from tai_report.models import Indicator, Report, ReportImage
from tai_report.services.exceptions import NotFoundError
from tai_report.services.report_store import SqlAlchemyReportStore
from tai_report.services.types import ImageInput, ReportPayload


def _payload(overall=0.8, images=(), text="Narrative"):
    return ReportPayload(
        overall_score=overall,
        scores={"SAFETY": overall, "PRIVACY": -1},
        analysis_text=text,
        weight_snapshot=None,
        llm_meta={"provider": "openrouter"},
        images=list(images),
    )


@pytest.fixture
def store(session_factory):
    return SqlAlchemyReportStore(session_factory)


class TestLoadResponse:
    @pytest.mark.asyncio
    async def test_snapshot_contains_questions_and_options(self, store, scenario_response):
        response = scenario_response["response"]

        snapshot = await store.get_response_with_answers(response.id)

        assert snapshot.id == response.id
        assert len(snapshot.answers) == 3
        by_order = {answer.question.order: answer for answer in snapshot.answers}
        assert by_order[1].value == 90.0
        assert by_order[1].question.indicator == "SAFETY"
        assert by_order[3].question.type == "SINGLE_CHOICE"
        assert by_order[3].option.text == "Not applicable"
        assert by_order[3].option.value == -1.0

    @pytest.mark.asyncio
    async def test_unknown_response_is_none(self, store, db_engine):
        assert await store.get_response_with_answers(999) is None


class TestProjectWeights:
    @pytest.mark.asyncio
    async def test_weights_ordered_by_rank(self, store, survey):
        project = survey.project(
            [(Indicator.SAFETY, 2, 0.4), (Indicator.ACCURACY, 1, 0.6), (Indicator.PRIVACY, 3, None)]
        )

        weights = await store.get_project_weights(project.id)

        assert [(w.indicator, w.rank, w.weight) for w in weights] == [
            ("ACCURACY", 1, 0.6),
            ("SAFETY", 2, 0.4),
            ("PRIVACY", 3, None),
        ]

    @pytest.mark.asyncio
    async def test_no_project_gives_no_weights(self, store):
        assert await store.get_project_weights(None) == []


class TestUpsert:
    @pytest.mark.asyncio
    async def test_creates_report(self, store, scenario_response):
        response = scenario_response["response"]

        record = await store.upsert_report(
            response.id, _payload(images=[ImageInput("https://img.test/a.png", "Radar")])
        )

        assert record.response_id == response.id
        assert record.overall_score == pytest.approx(0.8)
        assert record.scores == {"SAFETY": 0.8, "PRIVACY": -1}
        assert record.analysis_text == "Narrative"
        assert [(image.url, image.caption) for image in record.images] == [
            ("https://img.test/a.png", "Radar")
        ]

    @pytest.mark.asyncio
    async def test_regeneration_updates_single_row(self, store, scenario_response, db_session):
        response = scenario_response["response"]

        first = await store.upsert_report(response.id, _payload(0.5, text="First"))
        second = await store.upsert_report(response.id, _payload(0.9, text="Second"))

        assert second.id == first.id
        assert second.analysis_text == "Second"
        assert second.overall_score == pytest.approx(0.9)
        assert db_session.scalar(select(func.count()).select_from(Report)) == 1

    @pytest.mark.asyncio
    async def test_images_replaced_and_cleared(self, store, scenario_response, db_session):
        response = scenario_response["response"]

        await store.upsert_report(
            response.id,
            _payload(images=[ImageInput("https://img.test/1.png"), ImageInput("https://img.test/2.png")]),
        )
        replaced = await store.upsert_report(
            response.id, _payload(images=[ImageInput("https://img.test/3.png")])
        )
        assert [image.url for image in replaced.images] == ["https://img.test/3.png"]

        cleared = await store.upsert_report(response.id, _payload())
        assert cleared.images == []
        assert db_session.scalar(select(func.count()).select_from(ReportImage)) == 0


class TestReadAndImages:
    @pytest.mark.asyncio
    async def test_get_report(self, store, scenario_response):
        response = scenario_response["response"]
        created = await store.upsert_report(response.id, _payload())

        loaded = await store.get_report(response.id)

        assert loaded.id == created.id
        assert loaded.llm_meta == {"provider": "openrouter"}
        assert await store.get_report(response.id + 100) is None

    @pytest.mark.asyncio
    async def test_add_image(self, store, scenario_response):
        report = await store.upsert_report(scenario_response["response"].id, _payload())

        image = await store.add_report_image(report.id, ImageInput("https://img.test/x.png", "X"))

        assert image.report_id == report.id
        loaded = await store.get_report(scenario_response["response"].id)
        assert [i.id for i in loaded.images] == [image.id]

    @pytest.mark.asyncio
    async def test_add_image_to_unknown_report(self, store, db_engine):
        with pytest.raises(NotFoundError) as exc_info:
            await store.add_report_image(404, ImageInput("https://img.test/x.png"))

        assert exc_info.value.entity == "Report"
