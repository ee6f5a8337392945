"""
Master data services: parts, defect types, sampling reasons,
and the defect observations recorded against inspections.
"""

from typing import Any, Generic, List, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qc_inspection.core.exceptions import NotFoundError, StoreError, UniquenessConflictError
from qc_inspection.core.logging import get_logger
from qc_inspection.models import Defect, DefectData, InspectionRecord, Part, SamplingReason
from qc_inspection.schemas.defect import DefectDataCreate

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", Part, Defect, SamplingReason)


class MasterDataService(Generic[ModelT]):
    """
    Create / list / get / update / deactivate for a master table.

    Rows are never deleted here; ``deactivate`` clears ``is_active`` so
    that existing inspections keep their references.
    """

    model: Type[ModelT]
    label: str
    order_by: Any

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, active_only: bool = False) -> List[ModelT]:
        stmt = select(self.model).order_by(self.order_by)
        if active_only:
            stmt = stmt.where(self.model.is_active.is_(True))
        try:
            return list((await self.db.execute(stmt)).scalars().all())
        except SQLAlchemyError as e:
            raise StoreError(f"Could not list {self.label}s") from e

    async def get(self, key: Any) -> ModelT:
        try:
            row = await self.db.get(self.model, key)
        except SQLAlchemyError as e:
            raise StoreError(f"Could not read {self.label} {key}") from e
        if row is None:
            raise NotFoundError(f"{self.label.capitalize()} {key} not found")
        return row

    async def _commit(self, row: ModelT, duplicate_message: str) -> ModelT:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise UniquenessConflictError(duplicate_message) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError(f"Could not save {self.label}") from e
        await self.db.refresh(row)
        return row

    async def create(self, payload: BaseModel, user_id: int = 0) -> ModelT:
        row = self.model(**payload.model_dump(), created_by=user_id, updated_by=user_id)
        self.db.add(row)
        row = await self._commit(row, f"{self.label.capitalize()} already exists")
        logger.info("Master data created", entity=self.label, key=str(self._key(row)))
        return row

    async def update(self, key: Any, payload: BaseModel, user_id: int = 0) -> ModelT:
        row = await self.get(key)
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(row, field, value)
        row.updated_by = user_id
        return await self._commit(row, f"{self.label.capitalize()} already exists")

    async def deactivate(self, key: Any, user_id: int = 0) -> ModelT:
        row = await self.get(key)
        row.is_active = False
        row.updated_by = user_id
        row = await self._commit(row, f"Could not deactivate {self.label} {key}")
        logger.info("Master data deactivated", entity=self.label, key=str(key))
        return row

    def _key(self, row: ModelT) -> Any:
        raise NotImplementedError


class PartService(MasterDataService[Part]):
    model = Part
    label = "part"
    order_by = Part.part_no.asc()

    def _key(self, row: Part) -> Any:
        return row.part_no

    async def create(self, payload: BaseModel, user_id: int = 0) -> Part:
        part_no = payload.part_no.strip()
        try:
            exists = await self.db.get(Part, part_no)
        except SQLAlchemyError as e:
            raise StoreError("Could not read parts") from e
        if exists is not None:
            raise UniquenessConflictError(f"Part {part_no} already exists", code="PART_EXISTS")
        return await super().create(payload.model_copy(update={"part_no": part_no}), user_id)


class DefectService(MasterDataService[Defect]):
    model = Defect
    label = "defect"
    order_by = Defect.name.asc()

    def _key(self, row: Defect) -> Any:
        return row.id


class SamplingReasonService(MasterDataService[SamplingReason]):
    model = SamplingReason
    label = "sampling reason"
    order_by = SamplingReason.id.asc()

    def _key(self, row: SamplingReason) -> Any:
        return row.id


class DefectDataService:
    """Defect observations recorded during an inspection."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _inspection(self, inspection_no: str) -> InspectionRecord:
        stmt = select(InspectionRecord).where(InspectionRecord.inspection_no == inspection_no)
        try:
            record = (await self.db.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreError(f"Could not read inspection {inspection_no}") from e
        if record is None:
            raise NotFoundError(f"Inspection {inspection_no} not found", code="INSPECTION_NOT_FOUND")
        return record

    async def list_for_inspection(self, inspection_no: str) -> List[DefectData]:
        stmt = (
            select(DefectData)
            .where(DefectData.inspection_no == inspection_no)
            .order_by(DefectData.id)
        )
        try:
            return list((await self.db.execute(stmt)).scalars().all())
        except SQLAlchemyError as e:
            raise StoreError(f"Could not read defects of {inspection_no}") from e

    async def create(self, payload: DefectDataCreate, user_id: int = 0) -> DefectData:
        inspection = await self._inspection(payload.inspection_no)
        await DefectService(self.db).get(payload.defect_id)

        data = payload.model_dump(exclude_none=True)
        row = DefectData(
            **data,
            station=inspection.station,
            created_by=user_id,
            updated_by=user_id,
        )
        self.db.add(row)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("Could not save defect data") from e

        await self.db.refresh(row)
        await self.db.refresh(row, attribute_names=["defect"])
        logger.info(
            "Defect recorded",
            inspection_no=row.inspection_no,
            defect_id=row.defect_id,
            ng_qty=row.ng_qty,
        )
        return row

    async def get(self, defect_data_id: int) -> DefectData:
        try:
            row = await self.db.get(DefectData, defect_data_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Could not read defect data {defect_data_id}") from e
        if row is None:
            raise NotFoundError(f"Defect data {defect_data_id} not found")
        return row

    async def delete(self, defect_data_id: int) -> None:
        row = await self.get(defect_data_id)
        try:
            await self.db.delete(row)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError(f"Could not delete defect data {defect_data_id}") from e
        logger.info("Defect data deleted", id=defect_data_id)
