"""
Base schemas with standardized field types for consistent API responses.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic_core import core_schema

from ..services.pricing_service import CENTS


class StandardizedModel(BaseModel):
    """Base model for responses built from ORM rows."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class StrictRequestModel(BaseModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class Money(Decimal):
    """Amount held to whole cents; serializes as float"""

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        def validate_money(value: Any) -> Decimal:
            try:
                if isinstance(value, (int, float, str)):
                    value = Decimal(str(value))
                if not isinstance(value, Decimal):
                    raise ValueError(f"Cannot convert {type(value)} to Money")
                return value.quantize(CENTS, rounding=ROUND_HALF_UP)
            except InvalidOperation as exc:
                raise ValueError(f"{value} is not a cent amount") from exc

        return core_schema.no_info_after_validator_function(
            validate_money,
            core_schema.union_schema(
                [
                    core_schema.int_schema(),
                    core_schema.float_schema(),
                    core_schema.str_schema(),
                    core_schema.is_instance_schema(Decimal),
                ]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(
                float,
                info_arg=False,
                return_schema=core_schema.float_schema(),
            ),
        )
