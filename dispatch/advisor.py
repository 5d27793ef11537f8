"""
Purpose: Delegated decisions for "AI mode".
What it does:
- optimal_order(): asks a language model for the visiting order of the stops
- choose_vehicle(): asks it to pick one vehicle from the ETA-sorted options

The engine validates every answer and falls back to its own choice, so the
advisor only has to be good, never correct.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from openai import OpenAI

from rides.models import RideRequest
from .models import AssignmentAlternative

load_dotenv()
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
MODEL = os.getenv("DISPATCH_AI_MODEL", "gpt-4o-mini")

logger = logging.getLogger(__name__)

ROUTE_ORDER_PROMPT = """
You are a logistics expert tasked with finding the most efficient route.
Given a travel time matrix, find the shortest path that starts at index 0 and visits all other
specified destinations exactly once. The path does not need to return to the start.

Start point: index 0 (fixed).
Destinations to visit: indices {destinations}.
Travel time matrix (in minutes), matrix[i][j] is the time from location i to location j:
{matrix}

Return a single JSON object with the key "optimal_order" whose value is the array of the destination
indices in the most efficient order. For destinations [1, 2, 3] and the path 0 -> 3 -> 1 -> 2:
{{"optimal_order": [3, 1, 2]}}
"""

VEHICLE_CHOICE_PROMPT = """
You are an expert taxi dispatcher. Select the single best vehicle for a customer from the options.

Number of passengers: {passengers}
Route: {route}
Vehicle options (pre-sorted by ETA in minutes):
{options}

Your primary goal is to minimize the customer's wait time: select the vehicle with the lowest "eta".
If several vehicles share the lowest ETA, choose the first one in the list.

Return a single JSON object containing only the ID of your chosen vehicle: {{"best_vehicle_id": <id>}}
"""


class OpenAIDispatchAdvisor:
    """
    Dispatch advisor backed by the OpenAI chat completions API.
    Deterministic settings (temperature 0) and JSON-object responses only.
    """

    def __init__(self, client: OpenAI, model: str = MODEL):
        self.client = client
        self.model = model

    @classmethod
    def from_env(cls) -> Optional[OpenAIDispatchAdvisor]:
        """None when no API key is configured; the engine reports that as a missing credential."""
        if not OPENAI_API_KEY:
            return None
        return cls(OpenAI(api_key=OPENAI_API_KEY))

    def _ask(self, prompt: str) -> Dict[str, Any]:
        response = self.client.chat.completions.create(
            model=self.model,
            temperature=0,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": "Answer with a single JSON object and nothing else."},
                {"role": "user", "content": prompt},
            ],
        )
        content = response.choices[0].message.content or "{}"
        return json.loads(content.strip())

    def optimal_order(self, matrix: List[List[float]], num_destinations: int) -> Optional[List[int]]:
        destinations = list(range(1, num_destinations + 1))
        result = self._ask(ROUTE_ORDER_PROMPT.format(destinations=json.dumps(destinations), matrix=json.dumps(matrix)))

        order = result.get("optimal_order")
        if not isinstance(order, list) or not all(isinstance(index, int) for index in order):
            logger.error(f"Advisor returned an unusable route order: {result!r}")
            return None
        return order

    def choose_vehicle(self, ride: RideRequest, alternatives: List[AssignmentAlternative]) -> Optional[int]:
        options = [
            {
                "id": alternative.vehicle.id,
                "name": alternative.vehicle.name,
                "capacity": alternative.vehicle.capacity,
                "eta": alternative.eta_minutes,
                "price": alternative.estimated_price,
            }
            for alternative in alternatives
        ]
        result = self._ask(
            VEHICLE_CHOICE_PROMPT.format(
                passengers=ride.passengers,
                route=" -> ".join(ride.stops),
                options=json.dumps(options, indent=2, ensure_ascii=False),
            )
        )

        vehicle_id = result.get("best_vehicle_id")
        if not isinstance(vehicle_id, int):
            logger.error(f"Advisor returned an unusable vehicle id: {result!r}")
            return None
        return vehicle_id
