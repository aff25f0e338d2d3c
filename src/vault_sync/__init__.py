"""vault_sync: bidirectional file synchronisation between two stores."""

__version__ = "0.1.0"
