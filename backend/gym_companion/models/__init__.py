from gym_companion.models.exercise import Exercise

__all__ = ["Exercise"]
