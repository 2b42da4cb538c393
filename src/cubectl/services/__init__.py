"""Service layer — resolution, execution and ServiceResult-returning operations.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
