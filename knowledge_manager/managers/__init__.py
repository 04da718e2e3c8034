"""
Managers module initialization.

Contains the storage managers for the Knowledge Assistant.
"""

from .milvus_manager import MilvusManager
from .postgres_manager import PostgreSQLManager, PostgreSQLConfig

__all__ = ['MilvusManager', 'PostgreSQLManager', 'PostgreSQLConfig']
