"""Routing — module route declarations compiled into one ordered table.

Routes are declared per module, compiled once at boot into an immutable
first-match dispatch table.
"""
