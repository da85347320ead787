"""
REVENUE SHARE ENGINE
Multi-tier sponsor payouts for a real-estate brokerage back office.
"""

from .directory import AgentDirectory
from .events import EventHooks
from .lifecycle import TransactionLifecycleManager
from .models import AgentType, CapType, RevenueShareResult, TransactionInput, TransactionUpdate
from .processor import RevenueShareEngine
from .storage import InMemoryStore

__all__ = [
    'AgentDirectory',
    'AgentType',
    'CapType',
    'EventHooks',
    'InMemoryStore',
    'RevenueShareEngine',
    'RevenueShareResult',
    'TransactionInput',
    'TransactionLifecycleManager',
    'TransactionUpdate',
]
