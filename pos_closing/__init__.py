"""Daily POS closing: vendor receipt reconciliation and cash settlement."""
