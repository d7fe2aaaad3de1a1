"""Infrastructure: process spawning, environment and configuration."""
