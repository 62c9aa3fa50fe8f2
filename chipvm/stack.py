"""CHIP-8 stack operations."""

import jax.numpy as jnp
from chipvm.constants import ADDRESS_MASK, STACK_SIZE
from chipvm.errors import StackOverflow, StackUnderflow
from chipvm.state import StackState


def push(stack: StackState, address: jnp.ndarray) -> StackState:
    """Push address onto stack."""
    masked_address = jnp.astype(address & ADDRESS_MASK, jnp.uint16)
    new_data = stack.data.at[stack.pointer].set(masked_address)
    return stack.replace(data=new_data, pointer=stack.pointer + 1)


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray]:
    """Pop address from stack."""
    new_pointer = stack.pointer - 1
    popped_address = stack.data[new_pointer]
    new_data = stack.data.at[new_pointer].set(0)
    return stack.replace(data=new_data, pointer=new_pointer), popped_address


def check_push(stack: StackState, address: int | None = None) -> None:
    """Raise StackOverflow if a push would exceed the stack depth."""
    if int(stack.pointer) >= STACK_SIZE:
        raise StackOverflow(address)


def check_pop(stack: StackState, address: int | None = None) -> None:
    """Raise StackUnderflow if there is nothing to pop."""
    if int(stack.pointer) <= 0:
        raise StackUnderflow(address)
