import inspect
import typing


CallbackType = typing.Callable[..., typing.Any]


class EventEmitter:

	"""
	Named-event observer registry.

	Used by ``DisplaySynchronizer`` to notify a keyboard view whenever the
	highlighted notes change. Listeners run synchronously, in registration
	order, inside the call that changed the state.
	"""

	def __init__ (self) -> None:

		self._listeners: typing.Dict[str, typing.List[CallbackType]] = {}


	def on (self, event_name: str, callback: CallbackType) -> None:

		"""
		Register a callback for an event name.
		"""

		self._listeners.setdefault(event_name, []).append(callback)


	def off (self, event_name: str, callback: CallbackType) -> None:

		"""
		Unregister a previously registered callback.

		Raises ``ValueError`` if the callback is not registered for the event.
		"""

		if callback not in self._listeners.get(event_name, []):
			raise ValueError(f"Callback not registered for event {event_name!r}")

		self._listeners[event_name].remove(callback)


	def listener_count (self, event_name: str) -> int:

		"""Number of callbacks registered for ``event_name``."""

		return len(self._listeners.get(event_name, []))


	def emit (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""
		Call every listener for ``event_name`` with the given arguments.

		Coroutine functions are rejected: observers of timer-driven state
		must not suspend.
		"""

		# Copy so a listener may unregister itself while being notified.
		for callback in list(self._listeners.get(event_name, [])):

			if inspect.iscoroutinefunction(callback):
				raise ValueError(f"Async callback registered for synchronous event {event_name!r}")

			callback(*args, **kwargs)

