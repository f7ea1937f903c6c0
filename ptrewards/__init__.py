"""
PT Rewards - points, stickers and reward redemptions on a Firebase Realtime Database
"""

__version__ = "1.0.0"
