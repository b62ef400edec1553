"""
Call analysis module
Intake filtering and call outcome classification, no I/O
"""

from .intake import should_process
from .classifier import classify_call
