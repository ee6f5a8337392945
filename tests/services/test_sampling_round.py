"""
Sampling round counter tests
"""
import pytest
from sqlalchemy.exc import OperationalError

from conftest import add_inspection
from qc_inspection.core.exceptions import InspectionValidationError, StoreError
from qc_inspection.services.sampling_round import (
    SamplingRoundCounter,
    UNKNOWN_ROUND,
    get_next_sampling_round,
)


def _failing_execute(*args, **kwargs):
    raise OperationalError("SELECT max(round)", {}, Exception("db down"))


@pytest.mark.asyncio
async def test_first_round_is_one(db_session):
    counter = SamplingRoundCounter(db_session)

    assert await counter.current_round("OQA", "LOT-A") == 0
    assert await counter.next_round("OQA", "LOT-A") == 1


@pytest.mark.asyncio
async def test_next_round_is_max_plus_one(db_session):
    for round_no in (1, 2, 5):
        await add_inspection(db_session, station="OQA", lot_no="LOT-A", round=round_no)
    # Same lot at another station and another lot at the same station
    await add_inspection(db_session, station="SIV", lot_no="LOT-A", round=9)
    await add_inspection(db_session, station="OQA", lot_no="LOT-B", round=7)

    counter = SamplingRoundCounter(db_session)
    assert await counter.current_round("OQA", "LOT-A") == 5
    assert await counter.next_round("oqa", " LOT-A ") == 6
    assert await get_next_sampling_round(db_session, "SIV", "LOT-A") == 10


@pytest.mark.asyncio
async def test_lookup_failure(db_session, monkeypatch):
    monkeypatch.setattr(db_session, "execute", _failing_execute)
    counter = SamplingRoundCounter(db_session)

    assert await counter.next_round("OQA", "LOT-A") == UNKNOWN_ROUND
    with pytest.raises(StoreError):
        await counter.current_round("OQA", "LOT-A")


@pytest.mark.asyncio
@pytest.mark.parametrize("station,lot_no", [("OQA", ""), ("OQA", "  "), ("", "LOT-A"), ("OQA", None)])
async def test_missing_input(db_session, station, lot_no):
    counter = SamplingRoundCounter(db_session)
    with pytest.raises(InspectionValidationError):
        await counter.next_round(station, lot_no)
