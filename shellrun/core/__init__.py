"""Core types: collaborator protocols, failures and message formatting."""
