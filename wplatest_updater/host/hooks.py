"""Host hook registry — filters transform a value, actions only notify.

The host owns one registry and passes it to every updater; each updater
subscribes its callbacks once at construction.
"""

import inspect
import logging
from itertools import count

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 10


class HookRegistry:
    """Maps hook names to callbacks ordered by priority, then registration."""

    def __init__(self):
        self._hooks: dict[str, list[tuple[int, int, object, int | None]]] = {}
        self._sequence = count()

    def add_filter(self, name: str, callback, priority: int = DEFAULT_PRIORITY):
        entry = (priority, next(self._sequence), callback, _positional_arity(callback))
        self._hooks.setdefault(name, []).append(entry)
        self._hooks[name].sort(key=lambda e: (e[0], e[1]))
        logger.debug("Hooked %r on %s (priority %d)", callback, name, priority)

    add_action = add_filter

    def remove_filter(self, name: str, callback) -> bool:
        entries = self._hooks.get(name, [])
        kept = [e for e in entries if e[2] != callback]
        if len(kept) == len(entries):
            return False
        if kept:
            self._hooks[name] = kept
        else:
            del self._hooks[name]
        return True

    remove_action = remove_filter

    def has_filter(self, name: str) -> bool:
        return bool(self._hooks.get(name))

    has_action = has_filter

    def apply_filters(self, name: str, value, *args):
        """Pass ``value`` through every callback on ``name`` and return it."""
        for _prio, _seq, callback, arity in list(self._hooks.get(name, [])):
            call_args = (value, *args)
            if arity is not None:
                call_args = call_args[:arity]
            value = callback(*call_args)
        return value

    def do_action(self, name: str, *args):
        for _prio, _seq, callback, arity in list(self._hooks.get(name, [])):
            call_args = args if arity is None else args[:arity]
            callback(*call_args)


def _positional_arity(callback) -> int | None:
    """Number of positional args ``callback`` accepts; None if unbounded."""
    try:
        params = inspect.signature(callback).parameters.values()
    except (TypeError, ValueError):
        return None
    positional = 0
    for param in params:
        if param.kind == param.VAR_POSITIONAL:
            return None
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            positional += 1
    return positional
