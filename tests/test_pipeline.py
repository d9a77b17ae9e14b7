"""End-to-end tests for the ContractAnalysisPipeline."""

import asyncio

import pytest

from legal_shield.errors import (
    ExternalServiceError,
    InputError,
    SessionBusyError,
    SessionCancelledError,
)
from legal_shield.pipeline import ContractAnalysisPipeline, truncate_masked
from legal_shield.session import Session, Stage

from conftest import SCENARIO, EchoClient


@pytest.fixture
def client() -> EchoClient:
    return EchoClient()


@pytest.fixture
def pipeline(client: EchoClient, session: Session) -> ContractAnalysisPipeline:
    return ContractAnalysisPipeline(client=client, session=session, check_interval=0.005)


class FailingClient:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    async def analyze(self, masked_text: str):
        raise self.exc


class BlockingClient:
    """Suspends until released, like a slow remote call."""

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def analyze(self, masked_text: str):
        self.started.set()
        await self.release.wait()
        raise AssertionError("never released in these tests")


class TestAnalyze:
    def test_scenario_round_trip(self, pipeline: ContractAnalysisPipeline, client: EchoClient):
        result = asyncio.run(pipeline.analyze(SCENARIO))

        sent = client.received[0]
        for literal in ("Jane Doe", "jane.doe@example.com", "5.000 USD", "01.01.2025"):
            assert literal not in sent
            assert not any(word in sent for word in literal.split())
            assert literal in result.risks[0].quote
        assert result.risks[0].quote == SCENARIO
        assert result.key_dates == ["01.01.2025"]
        assert result.risk_score == 72

    def test_enters_viewing_with_full_window(self, pipeline: ContractAnalysisPipeline):
        asyncio.run(pipeline.analyze(SCENARIO))

        status = pipeline.status()
        assert status.stage is Stage.VIEWING
        assert status.remaining_seconds == 60
        assert status.session_token.startswith("tk_")
        assert pipeline.result is not None

    def test_status_check_destroys_after_window(self, pipeline: ContractAnalysisPipeline, clock):
        asyncio.run(pipeline.analyze(SCENARIO))
        clock.advance(60.1)

        assert pipeline.status().stage is Stage.DESTROYED
        assert pipeline.result is None
        assert len(pipeline.session.redaction_map) == 0

    def test_timer_destroys_in_background(self, pipeline: ContractAnalysisPipeline, clock):
        async def scenario():
            await pipeline.analyze(SCENARIO)
            clock.advance(61)
            await asyncio.sleep(0.05)

        asyncio.run(scenario())

        assert pipeline.session.stage is Stage.DESTROYED
        assert pipeline.session.analysis_result is None

    def test_new_upload_after_destroy_starts_fresh(self, pipeline: ContractAnalysisPipeline, client):
        asyncio.run(pipeline.analyze(SCENARIO))
        old_map = pipeline.session.redaction_map
        pipeline.destroy()

        asyncio.run(pipeline.analyze(SCENARIO))

        assert len(old_map) == 0
        assert client.received[0] == client.received[1]
        assert pipeline.session.stage is Stage.VIEWING


class TestErrors:
    def test_short_input(self, pipeline: ContractAnalysisPipeline, client: EchoClient):
        with pytest.raises(InputError):
            asyncio.run(pipeline.analyze("too short"))

        assert pipeline.session.stage is Stage.ERRORED
        assert client.received == []
        assert len(pipeline.session.redaction_map) == 0

    def test_missing_input(self, pipeline: ContractAnalysisPipeline):
        with pytest.raises(InputError):
            asyncio.run(pipeline.analyze(None))

    def test_service_failure_discards_map(self, session: Session):
        pipeline = ContractAnalysisPipeline(
            client=FailingClient(ExternalServiceError("timeout")), session=session
        )

        with pytest.raises(ExternalServiceError):
            asyncio.run(pipeline.analyze(SCENARIO))

        assert session.stage is Stage.ERRORED
        assert session.error == "timeout"
        assert len(session.redaction_map) == 0
        assert session.analysis_result is None
        assert session.expiry_deadline is None

    def test_unexpected_failure_still_wipes(self, session: Session):
        pipeline = ContractAnalysisPipeline(client=FailingClient(RuntimeError("boom")), session=session)

        with pytest.raises(RuntimeError):
            asyncio.run(pipeline.analyze(SCENARIO))

        assert session.stage is Stage.ERRORED
        assert len(session.redaction_map) == 0

    def test_retry_after_error_resets_implicitly(self, pipeline: ContractAnalysisPipeline):
        with pytest.raises(InputError):
            asyncio.run(pipeline.analyze(""))

        asyncio.run(pipeline.analyze(SCENARIO))

        assert pipeline.session.stage is Stage.VIEWING


class TestConcurrency:
    def test_cancellation_during_processing(self, session: Session):
        client = BlockingClient()
        pipeline = ContractAnalysisPipeline(client=client, session=session)

        async def scenario():
            task = asyncio.create_task(pipeline.analyze(SCENARIO))
            await client.started.wait()
            held = session.redaction_map
            assert len(held) == 4
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return held

        held = asyncio.run(scenario())

        assert session.stage is Stage.IDLE
        assert len(held) == 0
        assert len(session.redaction_map) == 0

    def test_second_upload_rejected_while_processing(self, session: Session):
        client = BlockingClient()
        pipeline = ContractAnalysisPipeline(client=client, session=session)

        async def scenario():
            task = asyncio.create_task(pipeline.analyze(SCENARIO))
            await client.started.wait()
            with pytest.raises(SessionBusyError):
                await pipeline.analyze(SCENARIO)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())

    def test_reset_during_processing_discards_result(self, session: Session):
        pipeline = ContractAnalysisPipeline(client=EchoClient(), session=session)
        inner = pipeline.client

        class ResettingClient:
            async def analyze(self, masked_text: str):
                pipeline.reset()
                return await inner.analyze(masked_text)

        pipeline.client = ResettingClient()

        with pytest.raises(SessionCancelledError):
            asyncio.run(pipeline.analyze(SCENARIO))

        assert session.stage is Stage.IDLE
        assert session.analysis_result is None
        assert len(session.redaction_map) == 0


class TestTruncation:
    def test_truncation_happens_after_masking(self, session: Session, client: EchoClient):
        pipeline = ContractAnalysisPipeline(client=client, session=session, max_payload_chars=120)
        text = "clause " * 20 + "owner bob@example.com"

        asyncio.run(pipeline.analyze(text))

        assert len(client.received[0]) <= 120
        assert "bob@example.com" not in client.received[0]

    def test_placeholder_never_split(self):
        masked = "ab [REDACTED_EMAIL_1] cd"

        assert truncate_masked(masked, 10) == "ab "
        assert truncate_masked(masked, 22) == "ab [REDACTED_EMAIL_1] "
        assert truncate_masked(masked, 100) == masked
