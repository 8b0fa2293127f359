"""Service layer for business logic.

Services encapsulate the calendar rules, the daily completion state machine
and the streak/consistency arithmetic, keeping callers (an HTTP app, the CLI)
thin. Layer hierarchy:
    Callers -> Services (Business Logic) -> Repositories (Database)

Services should:
- Contain all business rules and validation
- Orchestrate calls to repositories
- Return frozen dataclasses (not ORM models)
- Let repository failures propagate untouched

Services should NOT:
- Directly execute SQL queries (use repositories)
- Know about HTTP request/response details or status codes
- Retry store operations
"""
