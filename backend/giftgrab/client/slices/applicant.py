# Overview: Applicant selection slice; who is assembling the order.

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ...fp import Failure, Result, Success
from ..container import FunctionalState, dispatch_table, with_data
from ..registry import SliceDefinition
from ..views import PersonView


@dataclass(frozen=True)
class ApplicantData:
    applicant_list: tuple[PersonView, ...] = ()
    selected_applicant: PersonView | None = None

    def to_dict(self) -> dict:
        return {
            "applicant_list": [p.to_dict() for p in self.applicant_list],
            "selected_applicant": self.selected_applicant.to_dict() if self.selected_applicant else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ApplicantData":
        selected = data.get("selected_applicant")
        return cls(
            applicant_list=tuple(PersonView.from_dict(p) for p in data.get("applicant_list") or []),
            selected_applicant=PersonView.from_dict(selected) if selected else None,
        )


@dataclass(frozen=True)
class SetApplicantList:
    applicants: tuple[PersonView, ...]


@dataclass(frozen=True)
class SelectApplicant:
    applicant: PersonView | None


@dataclass(frozen=True)
class ClearApplicant:
    pass


ApplicantAction = Union[SetApplicantList, SelectApplicant, ClearApplicant]


def _set_list(state: FunctionalState, action: SetApplicantList):
    applicants = tuple(action.applicants)
    selected = state.data.selected_applicant
    if selected is not None and selected not in applicants:
        selected = None
    return with_data(state, applicant_list=applicants, selected_applicant=selected)


def _select(state: FunctionalState, action: SelectApplicant):
    if action.applicant is None:
        return Failure("Invalid applicant data")
    return with_data(state, selected_applicant=action.applicant)


def _clear(state: FunctionalState, action: ClearApplicant):
    return with_data(state, selected_applicant=None)


reducer = dispatch_table("applicant", {
    SetApplicantList: _set_list,
    SelectApplicant: _select,
    ClearApplicant: _clear,
})


def validate(action, state: FunctionalState) -> Result[bool, str]:
    if isinstance(action, SelectApplicant):
        if action.applicant is None:
            return Failure("Applicant data is required")
        if not any(p.public_id == action.applicant.public_id for p in state.data.applicant_list):
            return Failure("Applicant not found in applicant list")
    return Success(True)


def selected_applicant(state: FunctionalState) -> PersonView | None:
    return state.data.selected_applicant


APPLICANT_SLICE = SliceDefinition(
    name="applicant",
    data_type=ApplicantData,
    reducer=reducer,
    validator=validate,
)
