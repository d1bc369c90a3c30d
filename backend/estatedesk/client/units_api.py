"""
EstateDesk Units API Client

Async client for the unit endpoints the board needs:
- Load the board units
- Persist a status move
"""

import logging
from typing import Any, Optional, Type, Union
from uuid import UUID

import httpx
from pydantic import BaseModel, ValidationError

from estatedesk.core.config import get_settings
from estatedesk.models.enums import UnitStatus
from estatedesk.schemas.board import BoardResponse, BoardUnit
from estatedesk.schemas.unit import UnitResponse

logger = logging.getLogger(__name__)


class UnitsApiError(Exception):
    """A unit API call failed (transport error, non-2xx or malformed response).

    `status_code` is None when no response was received.
    """

    def __init__(self, status_code: Optional[int], detail: str):
        super().__init__(f"{status_code or 'network'}: {detail}")
        self.status_code = status_code
        self.detail = detail


class UnitsApiClient:
    """Client for the EstateDesk `/units` API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.token = token
        self.timeout = timeout if timeout is not None else settings.api_timeout_seconds
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        response_model: Optional[Type[BaseModel]] = None,
        **kwargs: Any,
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._headers(),
                transport=self.transport,
            ) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise UnitsApiError(None, "Request timed out") from e
        except httpx.HTTPError as e:
            raise UnitsApiError(None, f"Request failed: {e}") from e

        if response.is_error:
            try:
                body = response.json()
                detail = body.get("detail", response.reason_phrase) if isinstance(body, dict) else body
            except ValueError:
                detail = response.text or response.reason_phrase
            if response.status_code >= 500:
                logger.error(f"[BOARD] {method} {path} failed with {response.status_code}: {detail}")
            raise UnitsApiError(response.status_code, str(detail))

        if response.status_code == 204 and response_model is None:
            return None
        try:
            data = response.json()
        except ValueError as e:
            raise UnitsApiError(response.status_code, "Invalid JSON in response") from e

        if response_model is None:
            return data
        try:
            return response_model.model_validate(data)
        except ValidationError as e:
            logger.error(f"[BOARD] {method} {path} returned a malformed body ({e.error_count()} errors)")
            raise UnitsApiError(response.status_code, f"Invalid {response_model.__name__} in response") from e

    async def update_status(
        self,
        unit_id: UUID,
        status: Union[UnitStatus, str],
        notes: Optional[str] = None,
    ) -> UnitResponse:
        """PATCH /units/{id}/status. Returns the server's copy of the unit."""
        payload: dict[str, Any] = {"status": UnitStatus(status).value}
        if notes:
            payload["notes"] = notes
        return await self._request(
            "PATCH", f"/units/{unit_id}/status", response_model=UnitResponse, json=payload
        )

    async def fetch_board(
        self,
        property_id: Optional[UUID] = None,
        locale: Optional[str] = None,
    ) -> BoardResponse:
        """GET /units/board with no filters besides property."""
        params: dict[str, str] = {}
        if property_id:
            params["property_id"] = str(property_id)
        if locale:
            params["locale"] = locale
        return await self._request("GET", "/units/board", response_model=BoardResponse, params=params)

    async def fetch_board_units(self, property_id: Optional[UUID] = None) -> list[BoardUnit]:
        """Every unit card on the board, flattened out of its columns."""
        board = await self.fetch_board(property_id=property_id)
        units = [unit for column in board.columns for unit in column.units]
        logger.debug(f"[BOARD] Fetched {len(units)} units")
        return units
