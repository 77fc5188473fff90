"""Read access to the runtime's LLM backend state, with optional activity tracking."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol, Tuple


class _State(Protocol):
    def get(self) -> Mapping[str, Any]: ...


class _Service(Protocol):
    def get(self) -> list[Any]: ...


class _ActivityTracker(Protocol):
    def start(
        self, operation: str, resource_type: str
    ) -> Tuple[Callable[[Exception], None], Callable[..., None], Callable[[], None]]: ...


class StateService:
    """Lists the current state of every known LLM backend."""

    def __init__(self, state: _State) -> None:
        self._state = state

    def get(self) -> list[Any]:
        """Return the backend states as a list."""
        return list(self._state.get().values())


class ActivityTrackedStateService:
    """Wraps a state service, reporting each read to an activity tracker.

    The tracker's ``start(operation, resource_type)`` returns a triple of
    callables: report an error, report a change, and end the activity.
    """

    def __init__(self, service: _Service, tracker: _ActivityTracker) -> None:
        self._service = service
        self._tracker = tracker

    def get(self) -> list[Any]:
        """Return the wrapped service's state, tracking the read."""
        report_error, _report_change, end = self._tracker.start("read", "state")
        try:
            return self._service.get()
        except Exception as exc:
            report_error(exc)
            raise
        finally:
            end()


def with_activity_tracker(
    service: _Service, tracker: _ActivityTracker
) -> ActivityTrackedStateService:
    """Wrap ``service`` so that its reads are reported to ``tracker``."""
    return ActivityTrackedStateService(service, tracker)