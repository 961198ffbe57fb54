"""Schemas, enums and permission rules shared by the Taskhub server, relay and client."""

__version__ = "0.1.0"
