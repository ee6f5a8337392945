"""
Inspection number generator tests
"""
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from conftest import add_inspection
from qc_inspection.core.config import Settings
from qc_inspection.core.exceptions import (
    InspectionValidationError,
    StoreError,
    UniquenessConflictError,
)
from qc_inspection.services import inspection_number
from qc_inspection.services.inspection_number import (
    InspectionNumberGenerator,
    parse_counter,
    parse_work_week,
)

REFERENCE_DATE = date(2025, 8, 10)


def _failing_execute(*args, **kwargs):
    raise OperationalError("SELECT inspection_no FROM inspectiondata", {}, Exception("db down"))


class TestBuildPrefix:
    """Prefix building is pure; no session needed"""

    def test_prefix_layout(self, settings):
        generator = InspectionNumberGenerator(None, settings)
        assert generator.build_prefix("OQA", REFERENCE_DATE, "6") == "OQA260806-10"

    def test_station_is_used_as_given(self, settings):
        generator = InspectionNumberGenerator(None, settings)
        assert generator.build_prefix("Oqa", "2025-08-10", 7) == "Oqa260807-10"

        with pytest.raises(InspectionValidationError) as exc_info:
            generator.build_prefix(" siv ", "2025-08-10", 7)
        assert exc_info.value.code == "STATION_TOO_LONG"

    def test_fiscal_year_differs_from_calendar_year(self, settings):
        generator = InspectionNumberGenerator(None, settings)
        # January 2025 is still in FY2025
        assert generator.build_prefix("OQA", date(2025, 1, 3), "28") == "OQA250128-03"

    @pytest.mark.parametrize("station", ["", "   ", None, "OQAX"])
    def test_invalid_station(self, settings, station):
        generator = InspectionNumberGenerator(None, settings)
        with pytest.raises(InspectionValidationError):
            generator.build_prefix(station, REFERENCE_DATE, "6")

    @pytest.mark.parametrize("work_week", ["0", "54", "ab", "", None, "-1"])
    def test_invalid_work_week(self, settings, work_week):
        generator = InspectionNumberGenerator(None, settings)
        with pytest.raises(InspectionValidationError) as exc_info:
            generator.build_prefix("OQA", REFERENCE_DATE, work_week)
        assert exc_info.value.code == "INVALID_WORK_WEEK"

    def test_invalid_date(self, settings):
        generator = InspectionNumberGenerator(None, settings)
        with pytest.raises(InspectionValidationError) as exc_info:
            generator.build_prefix("OQA", "10/08/2025", "6")
        assert exc_info.value.code == "INVALID_DATE"


def test_parse_helpers():
    assert parse_work_week("06") == 6
    assert parse_work_week(53) == 53
    assert parse_counter("OQA260806-100012") == 12
    assert parse_counter("OQA260806-10ABCD") is None
    assert parse_counter("OQA260806-10１２３４") is None
    assert parse_counter("") is None


class TestGenerate:
    @pytest.mark.asyncio
    async def test_first_number_of_the_day(self, db_session, settings):
        generator = InspectionNumberGenerator(db_session, settings)
        assert await generator.generate("OQA", REFERENCE_DATE, "6") == "OQA260806-100001"

    @pytest.mark.asyncio
    async def test_max_plus_one(self, db_session, settings):
        await add_inspection(db_session, inspection_no="OQA260806-100001")
        await add_inspection(db_session, inspection_no="OQA260806-100007")
        # Other prefixes do not count
        await add_inspection(db_session, inspection_no="OQA260806-110042")
        await add_inspection(db_session, inspection_no="SIV260806-100099")

        generator = InspectionNumberGenerator(db_session, settings)
        assert await generator.generate("OQA", REFERENCE_DATE, "06") == "OQA260806-100008"

    @pytest.mark.asyncio
    async def test_unparsable_counters_are_skipped(self, db_session, settings):
        await add_inspection(db_session, inspection_no="OQA260806-100003")
        await add_inspection(db_session, inspection_no="OQA260806-10ABCD")
        await add_inspection(db_session, inspection_no="oqa260806-100050")

        generator = InspectionNumberGenerator(db_session, settings)
        assert await generator.generate("OQA", REFERENCE_DATE, "6") == "OQA260806-100004"

    @pytest.mark.asyncio
    async def test_generation_does_not_reserve(self, db_session, settings):
        generator = InspectionNumberGenerator(db_session, settings)
        first = await generator.generate("OQA", REFERENCE_DATE, "6")
        second = await generator.generate("OQA", REFERENCE_DATE, "6")
        assert first == second == "OQA260806-100001"

    @pytest.mark.asyncio
    async def test_counter_exhausted(self, db_session, settings):
        await add_inspection(db_session, inspection_no="OQA260806-109999")

        generator = InspectionNumberGenerator(db_session, settings)
        with pytest.raises(UniquenessConflictError) as exc_info:
            await generator.generate("OQA", REFERENCE_DATE, "6")
        assert exc_info.value.code == "INSPECTION_NUMBER_EXHAUSTED"

    @pytest.mark.asyncio
    async def test_invalid_input_does_not_touch_the_store(self, db_session, settings, monkeypatch):
        monkeypatch.setattr(db_session, "execute", _failing_execute)
        generator = InspectionNumberGenerator(db_session, settings)

        with pytest.raises(InspectionValidationError):
            await generator.generate("OQA", REFERENCE_DATE, "99")


class TestFallback:
    @pytest.mark.asyncio
    async def test_timestamp_fallback_when_lookup_fails(self, db_session, settings, monkeypatch):
        monkeypatch.setattr(db_session, "execute", _failing_execute)
        monkeypatch.setattr(inspection_number.time, "time", lambda: 1754791234.5678)

        generator = InspectionNumberGenerator(db_session, settings)
        inspection_no = await generator.generate("OQA", REFERENCE_DATE, "6")

        assert inspection_no == "OQA260806-104567"
        assert len(inspection_no) == 16

    @pytest.mark.asyncio
    async def test_store_error_when_fallback_disabled(self, db_session, monkeypatch):
        monkeypatch.setattr(db_session, "execute", _failing_execute)
        settings = Settings(inspection_number_fallback_enabled=False)

        generator = InspectionNumberGenerator(db_session, settings)
        with pytest.raises(StoreError) as exc_info:
            await generator.generate("OQA", REFERENCE_DATE, "6")
        assert exc_info.value.code == "INSPECTION_NUMBER_LOOKUP_FAILED"


@pytest.mark.asyncio
async def test_mixed_case_station_keeps_its_own_sequence(db_session, settings):
    await add_inspection(db_session, inspection_no="OQA260806-100005")

    generator = InspectionNumberGenerator(db_session, settings)
    assert await generator.generate("Oqa", REFERENCE_DATE, "6") == "Oqa260806-100001"
