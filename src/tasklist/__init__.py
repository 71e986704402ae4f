"""Tasklist: multi-user todo service.

Users register and log in, then manage todo items that only they can
see. The interesting part is the ownership-scoped data access and the
bearer-token lifecycle that establishes who "they" are.
"""

__version__ = "0.1.0"
