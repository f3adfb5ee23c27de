"""
Battle engine package.

A turn-based RPG combat resolution engine: damage and critical hits, timed
status effects, enemy scaling and AI, summons, and player progression.
"""
