"""Tools package: command execution and environment utilities."""
