"""
FINANCE App - Courier balances, ledger and deposit receipts for DOMICILIOS
"""
