"""
CORE App - Users, role scoping and shared infrastructure for DOMICILIOS
"""
