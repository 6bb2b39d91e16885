"""
Core chain construction and verification for chainlog.
"""
