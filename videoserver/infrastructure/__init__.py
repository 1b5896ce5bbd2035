"""
Infrastructure layer - external service integrations.

- storage: Object storage (COS/S3)

These wrappers translate between provider APIs and our domain.
"""
