"""
SIV-from-OQA derived record tests
"""
import pytest
from sqlalchemy import select, func

from conftest import add_inspection, add_sampling_reason
from qc_inspection.core.exceptions import InspectionValidationError, NotFoundError
from qc_inspection.models import InspectionRecord
from qc_inspection.services.inspection_service import (
    DERIVED_BLANK_FIELDS,
    DERIVED_COPY_FIELDS,
    InspectionService,
)


async def _count(session) -> int:
    return (await session.execute(select(func.count(InspectionRecord.id)))).scalar_one()


@pytest.mark.asyncio
async def test_derived_record_fields(db_session, settings, fixed_now):
    reason = await add_sampling_reason(db_session)
    source = await add_inspection(
        db_session,
        inspection_no="OQA260806-100003",
        fy="2026",
        ww="06",
        lot_no="L2508-042",
        sampling_reason_id=reason.id,
        round=2,
    )

    record = await InspectionService(db_session, settings).create_derived_record(source.id, user_id=5)

    assert record.id != source.id
    assert record.station == "SIV"
    assert record.inspection_no == "SIV260807-100001"
    assert record.inspection_no_ref == "OQA260806-100003"
    assert record.round == 1
    assert (record.fy, record.ww, record.month_year) == ("2026", "07", "2025-08")
    assert record.created_by == 5
    for field in DERIVED_COPY_FIELDS:
        assert getattr(record, field) == getattr(source, field), field
    for field in DERIVED_BLANK_FIELDS:
        assert getattr(record, field) is None, field


@pytest.mark.asyncio
async def test_second_derivation_of_the_same_lot(db_session, settings, fixed_now):
    source = await add_inspection(db_session, lot_no="L2508-042")
    service = InspectionService(db_session, settings)

    first = await service.create_derived_record(source.id)
    second = await service.create_derived_record(source.id)

    assert (first.inspection_no, first.round) == ("SIV260807-100001", 1)
    assert (second.inspection_no, second.round) == ("SIV260807-100002", 2)
    assert second.inspection_no_ref == source.inspection_no


@pytest.mark.asyncio
async def test_missing_source_writes_nothing(db_session, settings, fixed_now):
    await add_inspection(db_session)

    with pytest.raises(NotFoundError) as exc_info:
        await InspectionService(db_session, settings).create_derived_record(999)

    assert exc_info.value.code == "INSPECTION_NOT_FOUND"
    assert await _count(db_session) == 1


@pytest.mark.asyncio
async def test_siv_record_cannot_be_derived_again(db_session, settings, fixed_now):
    source = await add_inspection(db_session, station="SIV")

    with pytest.raises(InspectionValidationError) as exc_info:
        await InspectionService(db_session, settings).create_derived_record(source.id)

    assert exc_info.value.code == "ALREADY_DERIVED"
    assert await _count(db_session) == 1


@pytest.mark.asyncio
async def test_other_target_station(db_session, settings, fixed_now):
    source = await add_inspection(db_session)

    record = await InspectionService(db_session, settings).create_derived_record(source.id, station="fqa")

    assert record.inspection_no == "FQA260807-100001"
    assert record.inspection_no_ref == source.inspection_no
