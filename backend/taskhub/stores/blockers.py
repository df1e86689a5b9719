"""Blocker record persistence."""

from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import select

from taskhub.exceptions import InvariantViolationError, NotFoundError
from taskhub.models.project import Blocker, BlockerStatus, EntityRef
from taskhub.stores.base import BaseStore

# Fields identifying the blocked entity; fixed once a blocker exists
IMMUTABLE_FIELDS = frozenset({"entity_id", "entity_type"})


class BlockerStore(BaseStore):
    """Create, update and query Blocker rows."""

    async def create(
        self,
        entity: EntityRef,
        reason: str,
        waiting_on: str = "",
        expected_date: date | None = None,
        prev_status: str | None = None,
        captures_prev: bool = False,
        created_by: UUID | None = None,
    ) -> Blocker:
        """Insert an active blocker and commit. created_at is set by the database."""
        blocker = Blocker(
            entity_type=entity.type.value,
            entity_id=entity.id,
            reason=reason,
            waiting_on=waiting_on,
            expected_date=expected_date,
            status=BlockerStatus.ACTIVE.value,
            prev_status=prev_status,
            captures_prev=captures_prev,
            created_by=created_by,
        )
        async with self.guard("create_blocker"):
            self.db.add(blocker)
            await self.db.commit()
            await self.db.refresh(blocker)
        return blocker

    async def get(self, blocker_id: UUID) -> Blocker:
        """
        Raises:
            NotFoundError: if no blocker has this id
        """
        async with self.guard("get_blocker"):
            result = await self.db.execute(
                select(Blocker)
                .where(Blocker.id == blocker_id)
                .execution_options(populate_existing=True)
            )
            blocker = result.scalar_one_or_none()

        if blocker is None:
            raise NotFoundError("blocker", blocker_id)
        return blocker

    async def update(self, blocker_id: UUID, **fields: Any) -> Blocker:
        """Apply field changes to a blocker and commit.

        The write is unconditional; applying the same values twice is a no-op
        in effect.
        """
        fixed = IMMUTABLE_FIELDS.intersection(fields)
        if fixed:
            raise InvariantViolationError(
                f"Blocker fields cannot change after creation: {sorted(fixed)}"
            )

        blocker = await self.get(blocker_id)
        async with self.guard("update_blocker"):
            for field, value in fields.items():
                setattr(blocker, field, value)
            await self.db.commit()
            await self.db.refresh(blocker)
        return blocker

    async def list_active(self, entity: EntityRef) -> list[Blocker]:
        """Active blockers attached to an entity."""
        return await self.list_for_entity(entity, include_cleared=False)

    async def list_for_entity(
        self, entity: EntityRef, include_cleared: bool = True
    ) -> list[Blocker]:
        """Blockers attached to an entity, newest first."""
        query = select(Blocker).where(
            Blocker.entity_type == entity.type.value,
            Blocker.entity_id == entity.id,
        )
        if not include_cleared:
            query = query.where(Blocker.status == BlockerStatus.ACTIVE.value)
        query = query.order_by(Blocker.created_at.desc())

        async with self.guard("list_blockers"):
            result = await self.db.execute(
                query.execution_options(populate_existing=True)
            )
            return list(result.scalars().all())
