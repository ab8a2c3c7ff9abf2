# Core package - foundational components
#
# Modules:
# - config: Application settings
# - logging: Structured logging
# - storage: User persistence gateway (PostgreSQL, in-memory)
