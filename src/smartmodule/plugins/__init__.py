"""Plugin package initialiser.

Kept side-effect free: concrete plugin modules (``logging``) self-register when
imported elsewhere (see ``smartmodule.__init__`` for the eager import).
"""

__all__: list[str] = []
