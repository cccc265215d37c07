"""Request id context variable for logging"""

import contextvars

# Create a context variable to store the request_id of the current storage request
request_id_context: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
