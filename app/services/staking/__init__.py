"""
Staking ledger services.

Submodules:
- calculator: ROI arithmetic for entries
- creator: amount validation and entry creation
- status_manager: entry state machine
- service: StakingService facade
"""
