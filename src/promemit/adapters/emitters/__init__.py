"""Alternate emitters implementing EmitterPort."""

from promemit.adapters.emitters.stdout import StdoutEmitter

__all__ = ["StdoutEmitter"]
