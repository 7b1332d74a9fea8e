"""
Federated LSTM aggregation coordinator.
"""

__version__ = "1.0.0"
