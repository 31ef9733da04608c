"""
Staking yield accounting core.
"""
