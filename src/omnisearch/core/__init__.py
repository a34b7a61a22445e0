"""Search coordination: validation, fan-out, merge and pagination."""
