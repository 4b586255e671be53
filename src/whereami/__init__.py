"""WhereAmI: compare GPS and IP-derived locations on a map."""

__version__ = "0.1.0"
