#!/usr/bin/env python3
"""Script with a subcommand and no default handler.

``nofallback.py sub`` succeeds; ``nofallback.py`` exits 1.
"""

from smartmodule import module, route


@route("nofallback::sub")
def sub(*args):
    print("sub", *args)


module()
