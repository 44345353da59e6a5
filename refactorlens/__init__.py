"""RefactorLens: structural comparison of legacy and refactored source files."""

__version__ = "0.1.0"
