"""
Utilities: money arithmetic, exceptions, password hashing, tree assembly
and atomic-unit helpers.
"""
