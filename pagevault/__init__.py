"""
PageVault: a versioned page store with a draft/publish workflow,
bearer-token sessions and an audit trail.
"""

__version__ = "1.0.0"
