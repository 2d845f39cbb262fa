"""Rebuild a NixOS or nix-darwin system from its flake and record the result in git."""

__version__ = "1.0.0"

__all__ = ["__version__"]
