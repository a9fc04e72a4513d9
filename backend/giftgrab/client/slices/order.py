# Overview: Order status slice; the order being looked at and its local confirmation history.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from ...fp import Failure, Result, Success
from ...time_utils import epoch_ms
from ..container import FunctionalState, dispatch_table, with_data
from ..registry import SliceDefinition
from ..views import OrderView, PersonView


@dataclass(frozen=True)
class HistoryEntry:
    action: str
    actor_public_id: str | None
    details: str
    timestamp: int

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "actor_public_id": self.actor_public_id,
            "details": self.details,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class OrderData:
    order: OrderView | None = None
    history: tuple[HistoryEntry, ...] = ()

    def to_dict(self) -> dict:
        return {
            "order": self.order.to_dict() if self.order else None,
            "history": [h.to_dict() for h in self.history],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OrderData":
        order = data.get("order")
        return cls(
            order=OrderView.from_dict(order) if order else None,
            history=tuple(HistoryEntry(**h) for h in data.get("history") or []),
        )


@dataclass(frozen=True)
class SetOrder:
    order: OrderView | None


@dataclass(frozen=True)
class ConfirmOrder:
    approver: PersonView | None
    at: int = field(default_factory=epoch_ms)


@dataclass(frozen=True)
class ClearOrder:
    pass


OrderAction = Union[SetOrder, ConfirmOrder, ClearOrder]


def _set(state: FunctionalState, action: SetOrder):
    if action.order is None:
        return Failure("Invalid order data")
    return with_data(state, order=action.order)


def _confirm(state: FunctionalState, action: ConfirmOrder):
    order = state.data.order
    if order is None or action.approver is None:
        return Failure("Invalid order data")
    entry = HistoryEntry(
        action="CONFIRM",
        actor_public_id=action.approver.public_id,
        details="Order confirmed",
        timestamp=action.at,
    )
    return with_data(
        state,
        order=order.confirmed_by(action.approver),
        history=state.data.history + (entry,),
    )


def _clear(state: FunctionalState, action: ClearOrder):
    return with_data(state, order=None, history=())


reducer = dispatch_table("order", {
    SetOrder: _set,
    ConfirmOrder: _confirm,
    ClearOrder: _clear,
})


def validate(action, state: FunctionalState) -> Result[bool, str]:
    if isinstance(action, ConfirmOrder):
        order = state.data.order
        if order is None:
            return Failure("No order loaded")
        if not order.is_pending:
            return Failure("Only pending orders can be confirmed")
        if action.approver is None:
            return Failure("Approver required for confirmation")
        if action.approver.public_id == order.applicant.public_id:
            return Failure("An applicant cannot approve their own order")
    return Success(True)


def current_order(state: FunctionalState) -> OrderView | None:
    return state.data.order


ORDER_SLICE = SliceDefinition(
    name="order",
    data_type=OrderData,
    reducer=reducer,
    validator=validate,
)
