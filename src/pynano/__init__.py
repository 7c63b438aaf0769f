"""pynano: undoable commands, a name registry and an undo/redo history."""

__version__ = "0.1.0"
