"""
Filter hooks - ordered callback chains that may rewrite a value.

Django signals cover fire-and-forget events; a FilterHook is for extension
points where each callback receives a value and must hand back the
(possibly modified) value for the next one. A callback rejects the value by
raising an exception, which stops the chain and propagates to the caller.
"""
from bisect import insort
from itertools import count


class FilterHook:
    """Named, prioritised chain of ``callback(value, **context) -> value``."""

    def __init__(self, name, default_priority=10):
        self.name = name
        self.default_priority = default_priority
        self._callbacks = []
        # Tie-breaker keeps registration order inside one priority
        self._sequence = count()

    def __repr__(self):
        return f"<FilterHook {self.name} ({len(self._callbacks)} callbacks)>"

    def __len__(self):
        return len(self._callbacks)

    def register(self, callback=None, priority=None):
        """
        Register a callback. Lower priority runs first.
        Usable directly or as a decorator: ``@hook.register(priority=5)``.
        """
        if priority is None:
            priority = self.default_priority

        def decorator(func):
            insort(self._callbacks, (priority, next(self._sequence), func))
            return func

        if callback is None:
            return decorator
        return decorator(callback)

    def unregister(self, callback):
        before = len(self._callbacks)
        self._callbacks = [entry for entry in self._callbacks if entry[2] is not callback]
        return len(self._callbacks) != before

    def clear(self):
        self._callbacks = []

    @property
    def callbacks(self):
        return [entry[2] for entry in self._callbacks]

    def apply(self, value, **context):
        """Run the value through every callback in priority order."""
        for _, _, callback in list(self._callbacks):
            value = callback(value, **context)
        return value
