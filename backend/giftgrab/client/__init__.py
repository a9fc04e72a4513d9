from .container import FunctionalState, StateContainer
from .middleware import LoggingMiddleware, PersistenceMiddleware, ValidationMiddleware
from .flows import ApprovalFlow, ClaimFlow, ClientSession, InProcessActions
from .registry import SliceDefinition, SliceRegistry
from .storage import JsonFileStorage, MemoryStorage
from .views import GiftView, OrderView, PersonView

__all__ = [
    'FunctionalState', 'StateContainer',
    'ApprovalFlow', 'ClaimFlow', 'ClientSession', 'InProcessActions',
    'LoggingMiddleware', 'PersistenceMiddleware', 'ValidationMiddleware',
    'SliceDefinition', 'SliceRegistry',
    'JsonFileStorage', 'MemoryStorage',
    'GiftView', 'OrderView', 'PersonView',
]
