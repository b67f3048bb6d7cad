"""Unix-style commands, file-system image builder, shell-line parser and Sv39 page-table model."""

__version__ = "0.1.0"