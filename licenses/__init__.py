"""
Licenses module - License record and evaluation.

This module handles:
- LicenseRecord entity and the pure LicenseEvaluator
- License activation, deactivation and status refresh
"""
