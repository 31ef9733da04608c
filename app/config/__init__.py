"""
Configuration: settings, database and business tables.
"""
