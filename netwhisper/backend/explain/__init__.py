from .client import RiskExplainer
from .gatekeeper import ExplainGatekeeper
from .models import RiskExplanation
from .risk import determine_risk_score

__all__ = ["RiskExplainer", "ExplainGatekeeper", "RiskExplanation", "determine_risk_score"]
