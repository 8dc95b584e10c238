"""
Test suite for platform-tip-input

Contains:
- tests/unit/          : Unit tests for individual modules
"""
