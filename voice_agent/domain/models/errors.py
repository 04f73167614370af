class ModelCallError(Exception):
    """The external model call failed (auth, rate limit, transport)"""

    def __init__(self, message: str, kind: str = "transport"):
        super().__init__(message)
        self.kind = kind


class ToolNotFoundError(LookupError):
    """A tool name could not be resolved against the registry"""

    def __init__(self, name: str):
        super().__init__(f"Tool not found: {name}")
        self.name = name
