from enum import Enum


class RoundState(Enum):
    """Lifecycle states of a single reaction round."""
    IDLE = 'idle'
    WAITING = 'waiting'      # Cue pending, input now is a false start
    READY = 'ready'          # Cue shown, reaction clock running
    TOO_EARLY = 'too_early'
    RESULT = 'result'


# States from which the primary input starts a new round
STARTABLE_STATES = frozenset({RoundState.IDLE, RoundState.RESULT, RoundState.TOO_EARLY})

# States abandoned when the page is hidden
INTERRUPTIBLE_STATES = frozenset({RoundState.WAITING, RoundState.READY})
