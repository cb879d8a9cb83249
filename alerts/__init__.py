"""
ALERTS App - Operational alerts for DOMICILIOS back-office
"""
