"""proxctl modules - Self-contained bricks following the brick philosophy

- Interaction Handler: confirm/warn/info abstraction over the terminal
"""

from . import interaction_handler

__all__ = ["interaction_handler"]
