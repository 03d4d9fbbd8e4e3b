"""Business logic services used by handlers.

Services are imported lazily by handlers so that importing a handler module
never creates boto3 resources.
"""

# Do NOT import services here - use lazy loading in handlers instead
