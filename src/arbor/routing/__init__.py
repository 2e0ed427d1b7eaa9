"""Routing — route declarations and the route tree they are compiled into.

Routes are declared through the API builder and compiled into an immutable
tree when the API is built.
"""
