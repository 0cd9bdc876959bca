"""contractseal - contract drafting and signing with encrypted payloads."""

__version__ = "0.1.0"
