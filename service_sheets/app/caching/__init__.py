"""
Sheets Gateway caching package.

Holds the in-process response cache. Entries are short-lived, expire on
their own timers and are invalidated explicitly after writes.
"""
