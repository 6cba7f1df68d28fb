"""
Test suite for the BOM configurator.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_selection_resolver_service.py -v
"""
