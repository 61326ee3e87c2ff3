"""Brain-rot Factory abuse-prevention core.

Dual-layer caching, multi-dimensional rate limiting, rewarded-ad credits
and replay-protected tokens for the character chat service.
"""

__version__ = "0.1.0"
