"""
Entities module for the battle engine.

This module defines the player and enemy combatants and how they are built
from progression records and enemy templates.
"""
