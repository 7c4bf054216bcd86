#!/usr/bin/env python3
"""Greeting script routed by smartmodule.

    ./greet.py hello Terry   -> Hello, Terry!
    ./greet.py               -> usage
    ./greet.py unknown       -> usage mentioning "unknown"

Set MODULE_DEBUG=1 to watch the routing decisions.
"""

from smartmodule import module, route


@route("greet::hello")
def hello(name="World"):
    print(f"Hello, {name}!")


@route("greet::bye")
def bye(*names):
    for name in names:
        print(f"Goodbye, {name}!")


@route()
def greet(*args):
    if args:
        print(f"Unknown command: {args[0]}")
    print("usage: greet.py <hello|bye> [name...]")
    return 2 if args else 0


module()
