"""
Security module for terraclient.

Validates values that reach the terraform command line and redacts
sensitive values from captured output.
"""

from .sanitizer import InputSanitizer, SecurityError
from .redactor import OutputRedactor

__all__ = ["InputSanitizer", "SecurityError", "OutputRedactor"]
