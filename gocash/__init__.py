"""
GoCash Collections Service

Role-based microloan collection management: installment schedules,
payment confirmation and portfolio dashboards over a snapshot store.
"""

__version__ = "1.0.0"
