from demin_sim.regeneration.state_machine import (
    RegenerationStateMachine,
    advance_cycle,
    begin_regeneration,
    queue_for_regeneration,
    regeneration_draw,
    start_cycle,
)

__all__ = [
    "RegenerationStateMachine",
    "advance_cycle",
    "begin_regeneration",
    "queue_for_regeneration",
    "regeneration_draw",
    "start_cycle",
]
