"""
irys-mcp - Agent tools for storing and retrieving data on the Irys ledger.

The package exposes a small set of tools that an agent host can call to:
- Upload structured values or files to the ledger with tags
- Retrieve every transaction matching owners, tags and a time range
- Fetch a single transaction (fixed or latest-in-chain)
- Append to a mutable chain (root transaction plus Root-TX follow-ups)

Example usage:
    $ irys-mcp serve
    $ irys-mcp retrieve 0xABC --tag App=demo
    $ irys-mcp get <transaction_id> --mutable
"""

__version__ = "0.1.0"
__author__ = "irys-mcp Contributors"

__all__ = [
    "__version__",
    "__author__",
]
