"""Infrastructure layer — sandbox application database, hierarchy graphs, backends.

This layer depends on stdlib, the domain layer, and third-party libs
(SQLAlchemy, NetworkX).  It must never import from commands or output.
"""
