"""Pydantic models for Zabbix JSON-RPC responses.

Design Principles:
- Graceful degradation: extra="allow" for unknown fields
- A response carries either result or error, never both

Usage:
    envelope = JSONRPCResponse.model_validate(response.json())
    if envelope.error:
        raise ...
    groups = envelope.result
"""

from typing import Any

from pydantic import BaseModel, Field, RootModel, model_validator


class JSONRPCError(BaseModel):
    """JSON-RPC error object.

    Zabbix puts a generic text in message ("Invalid params.") and the
    actual reason in data.
    """

    code: int = Field(..., description="JSON-RPC error code")
    message: str = Field("", description="Short error text")
    data: str | None = Field(None, description="Detailed reason")

    model_config = {"extra": "allow"}

    def get_full_message(self) -> str:
        """Combine message and data, skipping empty parts."""
        parts = [p for p in (self.message, self.data) if p]
        return " ".join(parts) if parts else f"Zabbix API error {self.code}"


class JSONRPCResponse(BaseModel):
    """JSON-RPC 2.0 response envelope."""

    jsonrpc: str = "2.0"
    result: Any = None
    error: JSONRPCError | None = None
    id: int | str | None = None

    model_config = {"extra": "allow"}

    @model_validator(mode="before")
    @classmethod
    def require_result_or_error(cls, data: Any) -> Any:
        if isinstance(data, dict) and "result" not in data and "error" not in data:
            raise ValueError("JSON-RPC response has neither result nor error")
        return data


class CreateResult(BaseModel):
    """Result of a *.create call, e.g. {"groupids": ["12"]}."""

    model_config = {"extra": "allow"}

    def first_id(self, key: str) -> str:
        """
        Return the first id under key.

        Raises:
            ValueError: If the key is missing or empty
        """
        ids = (self.model_extra or {}).get(key)
        if not ids:
            raise ValueError(f"create result has no {key}")
        return str(ids[0])


class LookupResult(RootModel[list[dict[str, Any]]]):
    """Result of a *.get lookup, e.g. [{"groupid": "2"}]; empty when nothing matched."""

    def first_id(self, key: str) -> str | None:
        """
        Return the id of the first row, None if there is no row.

        Raises:
            ValueError: If the first row has no usable id under key
        """
        if not self.root:
            return None
        value = self.root[0].get(key)
        if not isinstance(value, (str, int)) or isinstance(value, bool) or value == "":
            raise ValueError(f"lookup result has no {key}")
        return str(value)
