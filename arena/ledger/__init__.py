from arena.ledger.position_ledger import PositionLedger, describe_close

__all__ = ["PositionLedger", "describe_close"]
