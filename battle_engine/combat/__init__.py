"""
Combat system module for the battle engine.

This module handles damage calculation, cooldowns, enemy AI behavior, and
the turn-based battle state machine.
"""
