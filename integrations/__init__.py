"""
INTEGRATIONS App - Shopify order import for DOMICILIOS
"""
