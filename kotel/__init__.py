"""Control logic, record keeping, device models and protocol helpers for a pellet boiler controller."""

__version__ = "0.35.0"