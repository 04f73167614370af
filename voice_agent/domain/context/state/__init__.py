# State = everything needed to continue a session at a given moment.

# It is "the NOW" for the pipeline:

# Turn progress (processing, completed, failed)

# How many turns the session has taken

# Which tools were called last turn

# The current time as the model should see it

from .state_manager import SessionStateManager

__all__ = ["SessionStateManager"]
