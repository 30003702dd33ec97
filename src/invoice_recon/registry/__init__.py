"""Invoice registry access."""

from .reader import RegistryReader

__all__ = ["RegistryReader"]
