"""Core pipeline components: token exchange, fetch, build, orchestrate."""
