"""
Decides what the interpreter does with a Jump (0x89) command.

The sequence format has no loop counters, so a backwards jump is taken to
be the song's "loop back to start" and ends the track. Forward jumps are
followed. Alternative policies can be passed to the interpreter as any
callable with the same signature as direction_policy().
"""

from dataclasses import dataclass
from enum import Enum


class JumpAction(Enum):
    TAKE = "taken"
    IGNORE = "ignored"
    END_TRACK = "Track End"


@dataclass(frozen=True)
class JumpDecision:
    forward: bool
    action: JumpAction

    @property
    def annotation(self) -> str:
        """Marker text written into the track, e.g. 'Jump (forwards, taken)'."""
        direction = "forwards" if self.forward else "backwards"
        # Marker text is capped at 31 characters
        return f"Jump ({direction}, {self.action.value})"[:31]


def direction_policy(target: int, position: int, ignore_jumps: bool) -> JumpDecision:
    """Take forward jumps, end the track on backward ones.

    Args:
        target: Absolute jump target
        position: Absolute read position just after the jump's operands
        ignore_jumps: Skip every jump regardless of direction
    """
    forward = target > position
    if ignore_jumps:
        action = JumpAction.IGNORE
    elif forward:
        action = JumpAction.TAKE
    else:
        action = JumpAction.END_TRACK
    return JumpDecision(forward, action)
