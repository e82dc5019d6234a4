"""Building blocks of an interactive shell: built-in commands, job control, colours and file layout."""

__version__ = "2.1.13"
__all__ = ["__version__"]