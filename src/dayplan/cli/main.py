"""
CLI entry point using Typer.

Provides commands for customizing one day of a macrocycle:
- init: Load a day snapshot
- show: Display the day with today's values
- edit-set / add-set / remove-set: Change the sets of an exercise
- add-exercise / remove-exercise: Change the exercises of the day
- reset: Undo all changes
- diff: Show the payload that would be saved
- save / discard: Send or drop the changes
- workout: Run the day's sets interactively
"""

from .app import app

# Importing the command modules registers their commands on app
from .commands import editing, session, workout  # noqa: F401

if __name__ == "__main__":
    app()
