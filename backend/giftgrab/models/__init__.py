from .people import Person, SourceFormat, VALID_SOURCE_FORMATS
from .gifts import Gift, ClaimGuardError
from .orders import (
    Order,
    OrderGift,
    ORDER_PENDING,
    ORDER_COMPLETE,
    VALID_ORDER_STATUSES,
    CLAIM_PENDING,
    CLAIM_CLAIMED,
    CLAIM_FAILED,
    CLAIM_RELEASED,
)
from .events import Event, event_applicants, event_approvers, event_gifts

__all__ = [
    'Person', 'SourceFormat', 'VALID_SOURCE_FORMATS',
    'Gift', 'ClaimGuardError',
    'Order', 'OrderGift',
    'ORDER_PENDING', 'ORDER_COMPLETE', 'VALID_ORDER_STATUSES',
    'CLAIM_PENDING', 'CLAIM_CLAIMED', 'CLAIM_FAILED', 'CLAIM_RELEASED',
    'Event', 'event_applicants', 'event_approvers', 'event_gifts',
]
