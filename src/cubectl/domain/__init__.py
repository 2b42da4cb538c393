"""Domain layer — member specs, members, slices, POVs and status flags.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
