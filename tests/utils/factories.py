from functools import lru_cache

from faker import Faker
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.security import hash_password
from helpdesk.db.models import (
    PriorityEnum as Priority,
    Queue,
    RoleEnum as Role,
    Ticket,
    TicketStatusEnum as Status,
    User,
)

fake = Faker()


@lru_cache(maxsize=None)
def _hashed(password: str) -> str:
    # bcrypt повільний, а тестам достатньо одного хешу на пароль
    return hash_password(password)


async def create_user_factory(
    db_session: AsyncSession,
    email: str | None = None,
    password: str = "testpass123",
    name: str | None = None,
    role: Role = Role.customer,
) -> User:
    """
    Factory function to create test users.

    Args:
        db_session: Database session
        email: User email (generates random if None)
        password: Plain text password
        name: User name (generates random if None)
        role: admin, agent or customer

    Returns:
        Created User instance
    """
    user = User(
        email=(email or fake.unique.email()).lower(),
        password_hash=_hashed(password),
        name=name or fake.name(),
        role=role,
    )

    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)

    return user


async def create_queue_factory(
    db_session: AsyncSession,
    name: str | None = None,
    description: str | None = None,
    is_default: bool = False,
) -> Queue:
    queue = Queue(
        name=name or f"{fake.unique.word().capitalize()} queue",
        description=description,
        is_default=is_default,
    )

    db_session.add(queue)
    await db_session.commit()
    await db_session.refresh(queue)

    return queue


async def create_ticket_factory(
    db_session: AsyncSession,
    customer: User,
    queue: Queue,
    title: str | None = None,
    description: str | None = None,
    status: Status = Status.new,
    priority: Priority = Priority.medium,
    assignee: User | None = None,
    tags: list[str] | None = None,
) -> Ticket:
    ticket = Ticket(
        title=title or fake.sentence(nb_words=4),
        description=description or fake.paragraph(),
        status=status,
        priority=priority,
        customer_id=customer.id,
        assignee_id=assignee.id if assignee else None,
        queue_id=queue.id,
        tags=tags or [],
    )

    db_session.add(ticket)
    await db_session.commit()
    await db_session.refresh(ticket)

    return ticket
