"""
Core system module for the battle engine.

This module contains the fundamental components shared by the engine:
game constants, logging, notifications, content models and content loading.
"""

from .constants import (
    AbilityKind,
    BaseAttribute,
    BattleResult,
    DamageType,
    DerivedField,
    ExpScaling,
    StatusType,
    TargetMode,
    ToastSeverity,
    Turn,
)
