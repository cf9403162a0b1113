"""
Test suite for fieldsync.
"""
