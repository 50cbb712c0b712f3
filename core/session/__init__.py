from .sampling import LoopStats, SamplingLoop
from .session import PHASE_MESSAGES, TERMINAL_PHASES, AttendanceSession, SessionPhase

__all__ = [
    'LoopStats',
    'SamplingLoop',
    'PHASE_MESSAGES',
    'TERMINAL_PHASES',
    'AttendanceSession',
    'SessionPhase',
]
