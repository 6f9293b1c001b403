"""
Unit tests for UsageRecorder.
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

from usageflow.common.core.exceptions import (
    AdjustmentError,
    ErrorCode,
    InvalidParamsError,
    StorageError,
)
from usageflow.usage.models.domain import UsageEventType
from usageflow.usage.services.usage_recorder import UsageRecorder


@pytest.mark.asyncio
class TestRecordUsage:
    async def test_record_usage_creates_event(self, usage_repo):
        recorder = UsageRecorder(usage_repo)
        before = datetime.now(timezone.utc)

        event = await recorder.record_usage(
            "user-1", "api_calls", 2.5, metadata={"request_id": "abc"}
        )

        assert event.id is not None
        assert event.user_id == "user-1"
        assert event.feature_name == "api_calls"
        assert event.credits_used == 2.5
        assert event.event_type == UsageEventType.USAGE
        assert event.metadata == {"request_id": "abc"}
        assert before - timedelta(seconds=1) <= event.timestamp <= datetime.now(timezone.utc)

    async def test_events_are_appended_not_merged(self, usage_repo):
        recorder = UsageRecorder(usage_repo)

        first = await recorder.record_usage("user-1", "api_calls", 1)
        second = await recorder.record_usage("user-1", "api_calls", 1)
        events = await usage_repo.get_events_since(
            "user-1", "api_calls", datetime.now(timezone.utc) - timedelta(days=1)
        )

        assert first.id != second.id
        assert len(events) == 2

    async def test_negative_credits_are_accepted(self, usage_repo):
        recorder = UsageRecorder(usage_repo)

        event = await recorder.record_usage("user-1", "api_calls", -3)

        assert event.credits_used == -3

    @pytest.mark.parametrize(
        "user_id,feature_name",
        [("", "api_calls"), ("user-1", ""), (None, "api_calls")],
    )
    async def test_missing_identifiers_rejected(self, usage_repo, user_id, feature_name):
        recorder = UsageRecorder(usage_repo)

        with pytest.raises(InvalidParamsError) as exc_info:
            await recorder.record_usage(user_id, feature_name, 1)

        assert exc_info.value.code == ErrorCode.INVALID_PARAMS

    @pytest.mark.parametrize("credits", ["5", None, True, float("nan")])
    async def test_non_numeric_credits_rejected(self, usage_repo, credits):
        recorder = UsageRecorder(usage_repo)

        with pytest.raises(InvalidParamsError):
            await recorder.record_usage("user-1", "api_calls", credits)

    async def test_store_failure_carries_event_and_collection(self):
        usage_repo = AsyncMock()
        usage_repo.collection = "usage_events"
        usage_repo.create.side_effect = StorageError(
            "Store insert failed on usage_events", details={"error": "disk full"}
        )
        recorder = UsageRecorder(usage_repo)

        with pytest.raises(StorageError) as exc_info:
            await recorder.record_usage("user-1", "api_calls", 4)

        details = exc_info.value.details
        assert details["collection"] == "usage_events"
        assert details["event"]["user_id"] == "user-1"
        assert details["event"]["credits_used"] == 4
        assert details["cause"] == {"error": "disk full"}


@pytest.mark.asyncio
class TestRecordAdjustment:
    async def test_adjustment_with_reason(self, usage_repo):
        recorder = UsageRecorder(usage_repo)

        event = await recorder.record_adjustment(
            "user-1", "api_calls", -2, {"reason": "refund for failed job"}
        )

        assert event.event_type == UsageEventType.ADJUSTMENT
        assert event.credits_used == -2
        assert event.metadata["reason"] == "refund for failed job"

    @pytest.mark.parametrize("metadata", [None, {}, {"reason": ""}, {"note": "x"}])
    async def test_adjustment_without_reason_rejected(self, usage_repo, metadata):
        recorder = UsageRecorder(usage_repo)

        with pytest.raises(AdjustmentError) as exc_info:
            await recorder.record_adjustment("user-1", "api_calls", 5, metadata)

        assert exc_info.value.code == ErrorCode.ADJUSTMENT_ERROR

    async def test_rejected_adjustment_writes_nothing(self, usage_repo):
        recorder = UsageRecorder(usage_repo)

        with pytest.raises(AdjustmentError):
            await recorder.record_adjustment("user-1", "api_calls", 5, {})

        events = await usage_repo.get_events_since(
            "user-1", "api_calls", datetime.now(timezone.utc) - timedelta(days=1)
        )
        assert events == []


@pytest.mark.asyncio
class TestTrackEvent:
    async def test_credit_event(self, usage_repo):
        recorder = UsageRecorder(usage_repo)

        event = await recorder.record_credit("user-1", "api_calls", 7)

        assert event.event_type == UsageEventType.CREDIT
        assert event.credits_used == 7

    async def test_track_event_by_name(self, usage_repo):
        recorder = UsageRecorder(usage_repo)

        event = await recorder.track_event("user-1", "api_calls", "usage", 3)

        assert event.event_type == UsageEventType.USAGE

    async def test_track_adjustment_still_requires_reason(self, usage_repo):
        recorder = UsageRecorder(usage_repo)

        with pytest.raises(AdjustmentError):
            await recorder.track_event("user-1", "api_calls", "adjustment", 3)

    async def test_unknown_event_type_rejected(self, usage_repo):
        recorder = UsageRecorder(usage_repo)

        with pytest.raises(InvalidParamsError):
            await recorder.track_event("user-1", "api_calls", "refund", 3)
