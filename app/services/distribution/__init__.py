"""
Distribution services.

Submodules:
- balance_handler: wallet credits and debits
- roi_distributor: daily ROI sweep
- team_distributor: team earning sweep
- voucher_reconciler: completion of expired voucher positions
"""
