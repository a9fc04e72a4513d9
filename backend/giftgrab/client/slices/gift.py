# Overview: Gift bundle slice; the gifts an applicant has grabbed for the next order.

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Union

from ...fp import Failure, Result, Success
from ..container import FunctionalState, dispatch_table, with_data
from ..registry import SliceDefinition
from ..views import GiftView

MAX_GIFTS_PER_APPLICANT = 5


@dataclass(frozen=True)
class GiftData:
    gift_list: tuple[GiftView, ...] = ()
    applicant_gifts: tuple[GiftView, ...] = ()
    search_query: str = ""

    def to_dict(self) -> dict:
        return {
            "gift_list": [g.to_dict() for g in self.gift_list],
            "applicant_gifts": [g.to_dict() for g in self.applicant_gifts],
            "search_query": self.search_query,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GiftData":
        return cls(
            gift_list=tuple(GiftView.from_dict(g) for g in data.get("gift_list") or []),
            applicant_gifts=tuple(GiftView.from_dict(g) for g in data.get("applicant_gifts") or []),
            search_query=data.get("search_query") or "",
        )


@dataclass(frozen=True)
class SetGiftList:
    gifts: tuple[GiftView, ...]


@dataclass(frozen=True)
class AddGift:
    gift: GiftView | None


@dataclass(frozen=True)
class RemoveGift:
    gift_public_id: str


@dataclass(frozen=True)
class ClearGifts:
    pass


@dataclass(frozen=True)
class SetSearchQuery:
    query: str


GiftAction = Union[SetGiftList, AddGift, RemoveGift, ClearGifts, SetSearchQuery]


def _contains(gifts, public_id: str) -> bool:
    return any(g.public_id == public_id for g in gifts)


def _set_list_capped(max_gifts: int):
    def _set_list(state: FunctionalState, action: SetGiftList):
        # picked gifts are re-read from the new list; gone or claimed ones drop out
        listed = {g.public_id: g for g in action.gifts}
        kept = tuple(
            listed[g.public_id] for g in state.data.applicant_gifts
            if g.public_id in listed and not listed[g.public_id].is_claimed
        )
        return with_data(state, gift_list=tuple(action.gifts), applicant_gifts=kept[:max_gifts])

    return _set_list


def _add(state: FunctionalState, action: AddGift):
    if action.gift is None:
        return Failure("Invalid gift data")
    if _contains(state.data.applicant_gifts, action.gift.public_id):
        return Failure("Gift already added")
    return with_data(state, applicant_gifts=state.data.applicant_gifts + (action.gift,))


def _remove(state: FunctionalState, action: RemoveGift):
    if not action.gift_public_id:
        return Failure("Invalid gift ID")
    remaining = tuple(g for g in state.data.applicant_gifts if g.public_id != action.gift_public_id)
    return with_data(state, applicant_gifts=remaining)


def _clear(state: FunctionalState, action: ClearGifts):
    return with_data(state, applicant_gifts=())


def _search(state: FunctionalState, action: SetSearchQuery):
    return with_data(state, search_query=action.query if isinstance(action.query, str) else "")


def make_reducer(max_gifts: int = MAX_GIFTS_PER_APPLICANT):
    return dispatch_table("gift", {
        SetGiftList: _set_list_capped(max_gifts),
        AddGift: _add,
        RemoveGift: _remove,
        ClearGifts: _clear,
        SetSearchQuery: _search,
    })


def make_validator(max_gifts: int = MAX_GIFTS_PER_APPLICANT):
    def validate(action, state: FunctionalState) -> Result[bool, str]:
        if not isinstance(action, AddGift):
            return Success(True)
        gift = action.gift
        if gift is None:
            return Failure("Gift data is required")
        listed = next((g for g in state.data.gift_list if g.public_id == gift.public_id), None)
        if listed is None:
            return Failure("Gift not found in gift list")
        if _contains(state.data.applicant_gifts, gift.public_id):
            return Failure("Gift already added")
        if listed.is_claimed:
            return Failure("Gift already claimed")
        if len(state.data.applicant_gifts) >= max_gifts:
            return Failure(f"Maximum {max_gifts} gifts allowed per applicant")
        return Success(True)

    return validate


def selected_gift_ids(state: FunctionalState) -> list[str]:
    return [g.public_id for g in state.data.applicant_gifts]


def available_gifts(state: FunctionalState) -> list[GiftView]:
    """Unclaimed, not yet picked, narrowed by the search query on owner name."""
    query = state.data.search_query.strip().lower()
    picked = set(selected_gift_ids(state))
    return [
        g for g in state.data.gift_list
        if not g.is_claimed
        and g.public_id not in picked
        and (not query or query in g.owner_name.lower())
    ]


def can_submit(state: FunctionalState) -> bool:
    return len(state.data.applicant_gifts) > 0


def gift_slice(max_gifts: int = MAX_GIFTS_PER_APPLICANT) -> SliceDefinition:
    """The gift slice for a bundle cap; the same cap always yields the same definition."""
    return _gift_slice(int(max_gifts))


@lru_cache(maxsize=None)
def _gift_slice(max_gifts: int) -> SliceDefinition:
    return SliceDefinition(
        name="gift",
        data_type=GiftData,
        reducer=make_reducer(max_gifts),
        validator=make_validator(max_gifts),
    )


GIFT_SLICE = gift_slice()
