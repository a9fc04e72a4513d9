# Overview: Approver selection slice; who will confirm the order.

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ...fp import Failure, Result, Success
from ..container import FunctionalState, dispatch_table, with_data
from ..registry import SliceDefinition
from ..views import PersonView


@dataclass(frozen=True)
class ApproverData:
    approver_list: tuple[PersonView, ...] = ()
    selected_approver: PersonView | None = None

    def to_dict(self) -> dict:
        return {
            "approver_list": [p.to_dict() for p in self.approver_list],
            "selected_approver": self.selected_approver.to_dict() if self.selected_approver else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ApproverData":
        selected = data.get("selected_approver")
        return cls(
            approver_list=tuple(PersonView.from_dict(p) for p in data.get("approver_list") or []),
            selected_approver=PersonView.from_dict(selected) if selected else None,
        )


@dataclass(frozen=True)
class SetApproverList:
    approvers: tuple[PersonView, ...]


@dataclass(frozen=True)
class SelectApprover:
    approver: PersonView | None


@dataclass(frozen=True)
class ClearApprover:
    pass


ApproverAction = Union[SetApproverList, SelectApprover, ClearApprover]


def _set_list(state: FunctionalState, action: SetApproverList):
    approvers = tuple(action.approvers)
    selected = state.data.selected_approver
    if selected is not None and selected not in approvers:
        selected = None
    return with_data(state, approver_list=approvers, selected_approver=selected)


def _select(state: FunctionalState, action: SelectApprover):
    if action.approver is None:
        return Failure("Invalid approver data")
    return with_data(state, selected_approver=action.approver)


def _clear(state: FunctionalState, action: ClearApprover):
    return with_data(state, selected_approver=None)


reducer = dispatch_table("approver", {
    SetApproverList: _set_list,
    SelectApprover: _select,
    ClearApprover: _clear,
})


def validate(action, state: FunctionalState) -> Result[bool, str]:
    if isinstance(action, SelectApprover):
        if action.approver is None:
            return Failure("Approver data is required")
        if not any(p.public_id == action.approver.public_id for p in state.data.approver_list):
            return Failure("Approver not found in approver list")
    return Success(True)


def selected_approver(state: FunctionalState) -> PersonView | None:
    return state.data.selected_approver


APPROVER_SLICE = SliceDefinition(
    name="approver",
    data_type=ApproverData,
    reducer=reducer,
    validator=validate,
)
