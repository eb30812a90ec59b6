"""MotorAI vehicle maintenance intelligence and reminder engine."""

__version__ = "1.0.0"
