"""
clusterspec/models/validator.py

Defines a utility function for validating untyped data (parsed YAML/JSON)
against a pydantic-based type using TypeAdapter, reporting failures with a
clusterspec error kind chosen by the caller.
"""

from typing import Any, Type, TypeVar

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from clusterspec.exceptions import ClusterSpecError, InvalidOptionsError

T = TypeVar("T")


def validate_type(
    obj: Any,
    expected_type: Type[T],
    *,
    source: str = "input",
    error_cls: Type[ClusterSpecError] = InvalidOptionsError,
) -> T:
    """
    Validates that untyped data conforms to the expected pydantic-based type.

    Args:
        obj (Any): The object to validate (typically from yaml.safe_load or json.loads).
        expected_type (Type[T]): The type (pydantic or otherwise) to validate against.
        source (str): Where the data came from, used in the error message.
        error_cls (Type[ClusterSpecError]): Error kind raised on failure.

    Returns:
        T: The validated object, cast to the expected type.

    Raises:
        ClusterSpecError: An instance of error_cls if validation fails.
    """
    try:
        adapter = TypeAdapter(expected_type)
        return adapter.validate_python(obj)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        raise error_cls(f"Invalid {source}: {problems}") from e
