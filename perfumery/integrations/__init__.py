"""External services: OAuth identity providers and Sentry."""
