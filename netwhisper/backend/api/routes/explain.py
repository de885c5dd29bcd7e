"""
api/routes/explain.py

POST /api/explain — plain-language risk verdict for traffic to one
destination.

Request:  {destinationIp, packetSize, timestamp?}
Responses:
  200  {riskScore: Low|Medium|High, explanation, fallbackUsed}
  400  {error}  malformed body (see the validation handler in api/main.py)
  500  {riskScore: "Error", explanation}  anything unexpected, logged
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...explain import RiskExplainer
from ..serializers import ErrorResponse, ExplainRequest, ExplainResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["explain"])

_ERROR_BODY = ExplainResponse(
    risk_score="Error",
    explanation="An error occurred while analyzing the traffic. Please try again.",
)


def _get_explainer(request: Request) -> RiskExplainer:
    return request.app.state.explainer


@router.post(
    "/explain",
    response_model=ExplainResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ExplainResponse}},
)
async def explain(
    payload: ExplainRequest,
    explainer: RiskExplainer = Depends(_get_explainer),
):
    logger.info(
        "Explaining traffic to %s (%d bytes)", payload.destination_ip, payload.packet_size,
    )
    try:
        result = await explainer.explain(payload.destination_ip, payload.packet_size)
    except Exception:
        logger.exception("Error explaining traffic to %s", payload.destination_ip)
        return JSONResponse(
            status_code=500, content=_ERROR_BODY.model_dump(by_alias=True),
        )

    logger.info("Explanation for %s: risk=%s", payload.destination_ip, result.risk_score)
    return ExplainResponse.from_explanation(result)
