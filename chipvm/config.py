"""Machine configuration."""

from typing import Optional

from flax.struct import dataclass, field

from chipvm.constants import TIMER_HZ


@dataclass(frozen=True)
class MachineConfig:
    """Settings for a :class:`~chipvm.machine.Machine`.

    Attributes:
        timer_hz: Rate at which the delay and sound timers count down
        seed: Seed for the PRNG key used by CXNN
        start_timers: Start the background ticker when the machine is created
        key_wait_timeout: Seconds FX0A waits for a key before raising
            ``KeyWaitTimeout``; None waits until a key or shutdown
        log_level: Console log level
    """
    timer_hz: int = field(pytree_node=False, default=TIMER_HZ)
    seed: int = field(pytree_node=False, default=0)
    start_timers: bool = field(pytree_node=False, default=True)
    key_wait_timeout: Optional[float] = field(pytree_node=False, default=None)
    log_level: str = field(pytree_node=False, default="INFO")
