"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (lock files, git and nix
subprocesses, the console, configuration files) by implementing the
interfaces defined in the domain layer.
"""
