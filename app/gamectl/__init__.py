"""gamectl - Install, update and repair games from a remote catalog.

The launcher reconciles a declarative JSON catalog against the games
actually present on disk.
"""

__version__ = "0.1.0"
