import pytest
from sqlalchemy import select

from conftest import add_defect
from qc_inspection.models import Defect, SamplingReason
from qc_inspection.scripts.seed_master_data import seed_master_data


@pytest.mark.asyncio
async def test_seed_skips_existing_names(db_session):
    await add_defect(db_session, "Crack")

    result = await seed_master_data(
        db_session,
        defects=["Crack", " Scratch ", "Scratch", ""],
        sampling_reasons=["Normal sampling"],
    )
    await db_session.commit()

    assert result == {"defects": ["Scratch"], "sampling_reasons": ["Normal sampling"]}
    defects = (await db_session.execute(select(Defect.name).order_by(Defect.name))).scalars().all()
    assert defects == ["Crack", "Scratch"]
    reasons = (await db_session.execute(select(SamplingReason.name))).scalars().all()
    assert reasons == ["Normal sampling"]


@pytest.mark.asyncio
async def test_seed_is_repeatable(clean_db, db_session):
    await seed_master_data(db_session, defects=["Crack"])
    await db_session.commit()

    result = await seed_master_data(db_session, defects=["Crack"])
    assert result == {"defects": [], "sampling_reasons": []}
