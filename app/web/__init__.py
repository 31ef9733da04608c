"""
HTTP surface for scheduled triggers.
"""
