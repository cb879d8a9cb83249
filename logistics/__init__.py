"""
LOGISTICS App - Orders, zones and the order state machine for DOMICILIOS
"""
