"""
Central version constant for intakeflow.
"""

__version__ = "1.0.0"
