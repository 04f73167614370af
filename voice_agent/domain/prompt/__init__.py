from .prompt_assembler import PromptAssembler

__all__ = ["PromptAssembler"]
