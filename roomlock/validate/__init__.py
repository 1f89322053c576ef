"""Validation of untrusted analyzer input."""

from .analysis_validation import AnalysisValidationResult, find_duplicate_zone_names, validate_analysis

__all__ = ["AnalysisValidationResult", "find_duplicate_zone_names", "validate_analysis"]
