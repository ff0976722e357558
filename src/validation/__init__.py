"""
Validation package for generated mazes.

Public API:
    - ValidationResult, ValidationIssue, Severity: Core result types
    - ValidationStage: Pipeline stage enumeration
    - MazeValidator: Runs maze and BSP checks
    - ValidationError: Exception raised on FAIL issues when fail_fast=True
"""

from .core import (
    Severity,
    ValidationStage,
    ValidationIssue,
    ValidationResult,
    ValidationError,
)
from .rules import ValidationRule, ALL_RULES, get_rule
from .unified_validator import MazeValidator

__all__ = [
    'Severity',
    'ValidationStage',
    'ValidationIssue',
    'ValidationResult',
    'ValidationError',
    'ValidationRule',
    'ALL_RULES',
    'get_rule',
    'MazeValidator',
]
