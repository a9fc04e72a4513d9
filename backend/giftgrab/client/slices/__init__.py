from .applicant import APPLICANT_SLICE
from .approver import APPROVER_SLICE
from .gift import GIFT_SLICE, gift_slice
from .order import ORDER_SLICE

__all__ = [
    'APPLICANT_SLICE',
    'APPROVER_SLICE',
    'GIFT_SLICE', 'gift_slice',
    'ORDER_SLICE',
]
