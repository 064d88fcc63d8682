"""
Application Layer

Channel discovery service, fetch collaborator contract, and the FastAPI edge.
"""
