"""
Repositories Package - FoodEval Scoring Engine
app/repositories/__init__.py

Persistence gateway and its in-memory and Snowflake implementations.
"""

from app.repositories.gateway import EvaluationStore
from app.repositories.memory_store import InMemoryEvaluationStore

__all__ = [
    "EvaluationStore",
    "InMemoryEvaluationStore",
]
