# wholesale_orders/services/order_status.py

from wholesale_orders.errors import Forbidden, InvalidTransition, OrderNotEditable
from wholesale_orders.models.enums import OrderStatus, UserRole, EDITABLE_STATUSES

# role -> statuses that role may move an order to
ROLE_ALLOWED_TARGETS: dict[UserRole, frozenset[OrderStatus]] = {
    UserRole.SALES: frozenset({OrderStatus.DRAFT, OrderStatus.TAKEN}),
    UserRole.ADMIN: frozenset(OrderStatus),
    UserRole.SUPER_ADMIN: frozenset(OrderStatus),
}

ELEVATED_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})


def allowed_targets(role) -> frozenset[OrderStatus]:
    try:
        return ROLE_ALLOWED_TARGETS[UserRole(role)]
    except ValueError:
        return frozenset()


def check_transition(role, current: OrderStatus, target: OrderStatus) -> None:
    """
    Raises unless ``role`` may move an order from ``current`` to ``target``.

    Any target is reachable from any status (``dispatched`` included) as long as
    it differs from the current one and the role allows it.
    """
    target = OrderStatus(target)
    if target == current:
        raise InvalidTransition(
            f"Order is already {current.value}",
            {"status": current.value},
        )
    if target not in allowed_targets(role):
        raise Forbidden(
            f"Role {role!s} cannot set status {target.value}",
            {"role": str(role), "status": target.value},
        )


def is_editable(status: OrderStatus) -> bool:
    return status in EDITABLE_STATUSES


def ensure_editable(order) -> None:
    if not is_editable(order.status):
        raise OrderNotEditable(
            f"Order {order.id} is {order.status.value} and can no longer be edited",
            {"id": order.id, "status": order.status.value},
        )


def is_elevated(role) -> bool:
    return role in ELEVATED_ROLES


def ensure_can_modify(actor, order) -> None:
    """Sales users only touch the orders they created; elevated roles touch any."""
    if is_elevated(actor.role):
        return
    if actor.role == UserRole.SALES and order.created_by == actor.id:
        return
    raise Forbidden(
        f"User {actor.id} cannot modify order {order.id}",
        {"id": order.id, "actor_id": actor.id},
    )
