"""
Effects system module for the battle engine.

This module contains the timed status effects (damage over time, stuns,
buffs and debuffs) and the rules that apply, decay and fold them into the
derived stats of an entity.
"""

from .status_effect import StatTarget, StatusEffect, resolve_stat_token
