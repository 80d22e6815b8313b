from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from payshia_erp.domain.errors import ForecastUnavailableError, ValidationError
from payshia_erp.domain.models import ForecastRequest, InventoryForecast

log = logging.getLogger("payshia_erp.forecast")

PROMPT = """You are an expert inventory analyst specializing in forecasting product demand and optimizing reorder points.

Based on the provided sales data and seasonal trends, you will calculate the optimal reorder point and reorder quantity for a given product. You will also provide a clear explanation of the factors considered in the forecast and the reasoning behind your recommendations.

Product Name: {product_name}
Past Sales Data: {past_sales_data}
Seasonal Trends: {seasonal_trends}

Output reorderPoint, reorderQuantity, and forecastExplanation."""

SYSTEM_PROMPT = (
    "Reply with a single JSON object with the keys reorderPoint (number), "
    "reorderQuantity (number) and forecastExplanation (string)."
)

FAILED_MESSAGE = "Failed to generate forecast. Please try again."

_FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_forecast(content: str) -> InventoryForecast:
    """Parse the model reply, tolerating a ```json fenced block around the object."""
    match = _FENCED_JSON.search(content or "")
    raw = match.group(1) if match else (content or "")
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("Forecast reply is not a JSON object.")

    point = data.get("reorderPoint")
    quantity = data.get("reorderQuantity")
    explanation = data.get("forecastExplanation")
    if not _is_number(point) or not _is_number(quantity) or not isinstance(explanation, str):
        raise ValueError(f"Forecast reply does not match the expected shape: {data}")

    return InventoryForecast(
        reorder_point=float(point),
        reorder_quantity=float(quantity),
        forecast_explanation=explanation,
    )


class ForecastService:
    def __init__(self, client: Optional[OpenAI] = None, api_key: Optional[str] = None, model: str = "gpt-4o-mini"):
        self._client = client
        self.api_key = api_key
        self.model = model

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    @staticmethod
    def validate(product_name: str, past_sales_data: str, seasonal_trends: str) -> ForecastRequest:
        values = [(x or "").strip() for x in (product_name, past_sales_data, seasonal_trends)]
        if not all(values):
            raise ValidationError("Invalid input.")
        return ForecastRequest(product_name=values[0], past_sales_data=values[1], seasonal_trends=values[2])

    def _complete(self, request: ForecastRequest) -> str:
        prompt = PROMPT.format(
            product_name=request.product_name,
            past_sales_data=request.past_sales_data,
            seasonal_trends=request.seasonal_trends,
        )
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
            temperature=0.2,
        )
        return response.choices[0].message.content or ""

    def forecast(self, product_name: str, past_sales_data: str, seasonal_trends: str) -> InventoryForecast:
        request = self.validate(product_name, past_sales_data, seasonal_trends)
        try:
            content = self._complete(request)
            result = parse_forecast(content)
        except (OpenAIError, ValueError, AttributeError, IndexError) as e:
            log.exception("forecast_failed product=%s model=%s error=%s", request.product_name, self.model, e)
            raise ForecastUnavailableError(FAILED_MESSAGE) from e

        log.info(
            "forecast_ok product=%s reorder_point=%s reorder_quantity=%s",
            request.product_name, result.reorder_point, result.reorder_quantity,
        )
        return result
