"""
Core module for shared domain infrastructure.

This module contains:
- Value objects, exceptions, clock and digest helpers
- Access-control configuration and metrics
- Storage error translation for the ORM adapters
- Periodic sweep tasks and management commands
"""
