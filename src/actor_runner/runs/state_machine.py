"""Enum-driven run state machine."""

from __future__ import annotations

from dataclasses import dataclass, field

from actor_runner.enums import RunStatus


@dataclass
class RunStateMachine:
    state: RunStatus = RunStatus.READY
    _transitions: dict[RunStatus, tuple[RunStatus, ...]] = field(init=False)

    def __post_init__(self) -> None:
        self._transitions = {
            RunStatus.READY: (
                RunStatus.RUNNING,
                RunStatus.SUCCEEDED,
                RunStatus.FAILED,
                RunStatus.ABORTED,
                RunStatus.TIMED_OUT,
            ),
            RunStatus.RUNNING: (
                RunStatus.SUCCEEDED,
                RunStatus.FAILED,
                RunStatus.ABORTED,
                RunStatus.TIMED_OUT,
            ),
            RunStatus.SUCCEEDED: (),
            RunStatus.FAILED: (),
            RunStatus.ABORTED: (),
            RunStatus.TIMED_OUT: (),
        }

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def can_transition(self, target: RunStatus) -> bool:
        if target == self.state:
            return not self.state.is_terminal
        return target in self._transitions.get(self.state, ())

    def transition_to(self, target: RunStatus) -> RunStatus:
        """Advance to `target`; repeating the current state is a no-op."""
        if target == self.state and not self.state.is_terminal:
            return self.state
        allowed = self._transitions.get(self.state, ())
        if target not in allowed:
            raise RuntimeError(
                f"Invalid transition {self.state.value} -> {target.value}"
            )
        self.state = target
        return self.state

    def time_out(self) -> None:
        """Mark a run that exceeded its budget; only legal before completion."""
        if RunStatus.TIMED_OUT not in self._transitions.get(self.state, ()):
            raise RuntimeError(f"Cannot time out from state {self.state.value}")
        self.state = RunStatus.TIMED_OUT


__all__ = ["RunStateMachine"]
