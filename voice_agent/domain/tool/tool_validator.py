from typing import Dict, List, NamedTuple
import jsonschema

from .base_tool import BaseTool


class ValidationResult(NamedTuple):
    is_valid: bool
    errors: List[str]


class ToolParameterValidator:
    """Validates tool arguments against the tool's JSON schema"""

    @staticmethod
    def validate_tool_call(tool: BaseTool, parameters: Dict[str, str]) -> ValidationResult:
        schema = tool.schema
        if not schema:
            return ValidationResult(True, [])

        try:
            jsonschema.validate(parameters, schema)
            return ValidationResult(True, [])
        except jsonschema.ValidationError as e:
            return ValidationResult(False, [f"Schema validation failed: {e.message}"])
        except jsonschema.SchemaError as e:
            return ValidationResult(False, [f"Invalid tool schema: {e.message}"])
