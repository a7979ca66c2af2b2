"""`boardroom`: snapshot-based dividend ledger with auxiliary reward pools.

Stakers deposit the share token and earn:
- the primary reward token, injected in discrete amounts and tracked by an
  append-only snapshot history of cumulative reward per share,
- any number of auxiliary tokens streamed per second over fixed time windows.

The kernel is pure (frozen dataclasses, integer-only, round-down fixed point).
Token movements are returned as ``Transfer`` intents for the shell to execute.

Public API:
- `initial_state(custody, config) -> BoardroomState`
- `step(state, params) -> StepResult`
- `step_or_raise(state, params) -> StepResult` (raises on rejection)
"""

from .engine import step, step_or_raise
from .invariants import check_all, check_step
from .state import initial_state, state_from_dict, state_to_dict
from .types import Action, ActionParams, BoardroomConfig, BoardroomState, Seat, StepResult

__all__ = [
    "step",
    "step_or_raise",
    "check_all",
    "check_step",
    "initial_state",
    "state_from_dict",
    "state_to_dict",
    "Action",
    "ActionParams",
    "BoardroomConfig",
    "BoardroomState",
    "Seat",
    "StepResult",
]
