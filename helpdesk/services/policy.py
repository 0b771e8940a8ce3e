"""
Authorization policy (правила доступу для заявок і черг)

Чисті функції від (актор, ресурс) без побічних ефектів.
Роутери викликають їх перед тим, як делегувати в services.tickets / services.queues,
щоб правила не розповзалися по ендпоінтах.
"""
from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from helpdesk.core.errors import ForbiddenError
from helpdesk.db.models import STAFF_ROLES, Comment, RoleEnum as Role, Ticket, User

# Маски полів: (роль, тип ресурсу, операція) -> дозволені ключі.
# None означає "без обмежень"; відсутній запис теж без обмежень.
FIELD_MASKS: dict[tuple[Role, str, str], frozenset[str] | None] = {
    (Role.customer, "ticket", "update"): frozenset({"title", "description"}),
    (Role.agent, "ticket", "update"): None,
    (Role.admin, "ticket", "update"): None,
}


def is_staff(role: Role | str | None) -> bool:
    return role in STAFF_ROLES


def can_view_ticket(actor: User, ticket: Ticket) -> bool:
    if is_staff(actor.role):
        return True
    return ticket.customer_id == actor.id


def ensure_can_view_ticket(actor: User, ticket: Ticket) -> None:
    if not can_view_ticket(actor, ticket):
        raise ForbiddenError("Not authorized to access this ticket")


def scope_ticket_filters(actor: User, filters: Mapping[str, object]) -> dict[str, object]:
    """Клієнт бачить лише свої заявки, хоч би що він передав у customer."""
    scoped = dict(filters)
    if not is_staff(actor.role):
        scoped["customer_id"] = actor.id
    return scoped


def allowed_fields(role: Role, kind: str, operation: str) -> frozenset[str] | None:
    return FIELD_MASKS.get((role, kind, operation))


def ensure_fields_allowed(actor: User, kind: str, operation: str, keys: Iterable[str]) -> None:
    """
    Відхиляє патч цілком, якщо в ньому є хоч одне недозволене поле.
    Часткове застосування не допускається.
    """
    mask = allowed_fields(actor.role, kind, operation)
    if mask is None:
        return
    disallowed = sorted(set(keys) - mask)
    if disallowed:
        raise ForbiddenError(
            f"Role {actor.role.value} may only update: {', '.join(sorted(mask))}"
        )


def ensure_can_update_ticket(actor: User, ticket: Ticket, keys: Iterable[str]) -> None:
    if not can_view_ticket(actor, ticket):
        raise ForbiddenError("Not authorized to update this ticket")
    ensure_fields_allowed(actor, "ticket", "update", keys)


def ensure_can_author_internal(actor: User, is_internal: bool) -> None:
    if is_internal and not is_staff(actor.role):
        raise ForbiddenError("Customers cannot create internal comments")


def ensure_can_comment(actor: User, ticket: Ticket, is_internal: bool) -> None:
    ensure_can_author_internal(actor, is_internal)
    if not can_view_ticket(actor, ticket):
        raise ForbiddenError("Not authorized to comment on this ticket")


def visible_comments(actor: User, comments: Sequence[Comment]) -> list[Comment]:
    if is_staff(actor.role):
        return list(comments)
    return [c for c in comments if not c.is_internal]
