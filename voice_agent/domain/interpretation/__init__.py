from .response_interpreter import ResponseInterpreter

__all__ = ["ResponseInterpreter"]
