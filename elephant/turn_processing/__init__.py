"""Turn/action processing helpers.

This package centralizes validation + turn advancement so every engine
operation checks the same rules in the same order.
"""

