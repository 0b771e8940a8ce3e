import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from helpdesk.core.errors import ConflictError, NotFoundError
from helpdesk.db.models import Queue, Ticket
from helpdesk.services import queues as queue_service
from tests.utils.factories import create_queue_factory, create_ticket_factory


async def _default_ids(db_session) -> list[int]:
    res = await db_session.execute(select(Queue.id).where(Queue.is_default == True))  # noqa: E712
    return list(res.scalars().all())


class TestCreateQueue:
    @pytest.mark.asyncio
    async def test_should_create_plain_queue(self, db_session):
        q = await queue_service.create_queue(db_session, name="Billing", description="Invoices")

        assert q.id is not None
        assert q.name == "Billing"
        assert q.is_default is False

    @pytest.mark.asyncio
    async def test_should_reject_duplicate_name(self, db_session):
        await queue_service.create_queue(db_session, name="Billing")

        with pytest.raises(ConflictError):
            await queue_service.create_queue(db_session, name="Billing")

    @pytest.mark.asyncio
    async def test_new_default_clears_previous_default(self, db_session):
        first = await queue_service.create_queue(db_session, name="First", is_default=True)
        second = await queue_service.create_queue(db_session, name="Second", is_default=True)

        assert await _default_ids(db_session) == [second.id]
        await db_session.refresh(first)
        assert first.is_default is False


class TestDefaultInvariant:
    @pytest.mark.asyncio
    async def test_at_most_one_default_after_mixed_operations(self, db_session):
        a = await queue_service.create_queue(db_session, name="A", is_default=True)
        b = await queue_service.create_queue(db_session, name="B")
        c = await queue_service.create_queue(db_session, name="C", is_default=True)
        await queue_service.update_queue(db_session, b.id, {"is_default": True})
        await queue_service.update_queue(db_session, a.id, {"description": "still not default"})

        assert await _default_ids(db_session) == [b.id]
        await db_session.refresh(c)
        assert c.is_default is False

    @pytest.mark.asyncio
    async def test_database_rejects_second_default_written_behind_the_service(self, db_session):
        await create_queue_factory(db_session, name="One", is_default=True)

        db_session.add(Queue(name="Two", is_default=True))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_setting_default_on_current_default_keeps_it(self, db_session):
        q = await queue_service.create_queue(db_session, name="Main", is_default=True)

        updated = await queue_service.update_queue(db_session, q.id, {"is_default": True})

        assert updated.is_default is True
        assert await _default_ids(db_session) == [q.id]


class TestReadQueues:
    @pytest.mark.asyncio
    async def test_list_is_sorted_by_name(self, db_session):
        for name in ("Zeta", "alpha", "Beta"):
            await create_queue_factory(db_session, name=name)

        names = [q.name for q in await queue_service.list_queues(db_session)]

        assert names == sorted(names)

    @pytest.mark.asyncio
    async def test_get_missing_queue_raises_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await queue_service.get_queue(db_session, 999)

    @pytest.mark.asyncio
    async def test_get_default_queue_without_default(self, db_session):
        await create_queue_factory(db_session, name="Plain")

        with pytest.raises(NotFoundError, match="No default queue found"):
            await queue_service.get_default_queue(db_session)


class TestUpdateQueue:
    @pytest.mark.asyncio
    async def test_rename_onto_existing_name_conflicts(self, db_session):
        await create_queue_factory(db_session, name="Sales")
        q = await create_queue_factory(db_session, name="Support")

        with pytest.raises(ConflictError):
            await queue_service.update_queue(db_session, q.id, {"name": "Sales"})

    @pytest.mark.asyncio
    async def test_update_missing_queue(self, db_session):
        with pytest.raises(NotFoundError):
            await queue_service.update_queue(db_session, 404, {"name": "x"})

    @pytest.mark.asyncio
    async def test_null_description_clears_it(self, db_session):
        q = await create_queue_factory(db_session, name="Billing", description="Invoices")

        updated = await queue_service.update_queue(db_session, q.id, {"description": None, "name": None})

        assert updated.description is None
        assert updated.name == "Billing"


class TestDeleteQueue:
    @pytest.mark.asyncio
    async def test_cannot_delete_default_queue(self, db_session):
        q = await create_queue_factory(db_session, name="General", is_default=True)

        with pytest.raises(ConflictError, match="Cannot delete the default queue"):
            await queue_service.delete_queue(db_session, q.id)

    @pytest.mark.asyncio
    async def test_delete_non_default_queue(self, db_session):
        q = await create_queue_factory(db_session, name="Temp")

        result = await queue_service.delete_queue(db_session, q.id)

        assert result == {"success": True, "message": "Queue deleted successfully"}
        with pytest.raises(NotFoundError):
            await queue_service.get_queue(db_session, q.id)

    @pytest.mark.asyncio
    async def test_tickets_of_deleted_queue_move_to_default(self, db_session, test_customer):
        default = await create_queue_factory(db_session, name="General", is_default=True)
        doomed = await create_queue_factory(db_session, name="Legacy")
        ticket = await create_ticket_factory(db_session, customer=test_customer, queue=doomed)

        await queue_service.delete_queue(db_session, doomed.id)

        await db_session.refresh(ticket)
        assert ticket.queue_id == default.id

    @pytest.mark.asyncio
    async def test_queue_with_tickets_and_no_default_cannot_be_deleted(self, db_session, test_customer):
        q = await create_queue_factory(db_session, name="Legacy")
        await create_ticket_factory(db_session, customer=test_customer, queue=q)

        with pytest.raises(ConflictError):
            await queue_service.delete_queue(db_session, q.id)

        count = (await db_session.execute(select(func.count()).select_from(Ticket))).scalar_one()
        assert count == 1


class TestGetOrCreateDefault:
    @pytest.mark.asyncio
    async def test_creates_general_when_no_default(self, db_session):
        q = await queue_service.get_or_create_default_queue(db_session)
        await db_session.commit()

        assert q.name == "General"
        assert q.is_default is True

    @pytest.mark.asyncio
    async def test_promotes_existing_general_queue(self, db_session):
        existing = await create_queue_factory(db_session, name="General")

        q = await queue_service.get_or_create_default_queue(db_session)
        await db_session.commit()

        assert q.id == existing.id
        assert q.is_default is True
