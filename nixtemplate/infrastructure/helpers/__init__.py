"""Template helper functions.

The git/nix computations that templates call. Each returns a string and
raises HelperError on failure.
"""
