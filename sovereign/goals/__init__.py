"""Goals — objectives that derive and own tasks."""
from sovereign.goals.planner import Goal, GoalPlanner

__all__ = ["Goal", "GoalPlanner"]
