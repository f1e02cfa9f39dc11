"""
Service layer: canvas operations built on the core connection.
"""
