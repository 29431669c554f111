"""
rollkeep - roll-and-keep dice resolution engine.

Turns trait, skill and ring ranks plus situational modifiers into a
normalized XkY dice expression, rolls it, and judges the total against a
target number. Consumable resources (void points, spell slots) are spent
before the roll and never refunded.
"""

__version__ = "0.1.0"
