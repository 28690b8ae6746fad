"""
LogLens: semantic log ingestion and anomaly explanation.
"""

__version__ = "1.0.0"
