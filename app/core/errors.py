def describe_error(exc: BaseException) -> str:
    """Render an exception as a never-empty, single-line message."""
    message = str(exc).strip()
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__
