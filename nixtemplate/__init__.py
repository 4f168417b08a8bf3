"""nix-template: instantiate Nix file templates with cached helper functions."""

__version__ = "0.2.0"
