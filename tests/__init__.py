"""
Tests for docstamp.
"""
