"""Core: settings, constants, lifespan and exception handlers."""
