from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# ==================== MODELS ====================


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class UserProfile(ApiModel):
    name: Optional[str] = None
    age: Optional[int] = None
    skin_type: Optional[str] = Field(default=None, alias="skinType")


class PredictRequest(ApiModel):
    image_data: Optional[str] = Field(default=None, alias="imageData")
    profile: Optional[UserProfile] = None


class AdapterLabels(ApiModel):
    detector: str
    direct_classifier: str = Field(alias="directClassifier")
    generative: str


class PredictResponse(ApiModel):
    prediction: str
    description: str
    severity: str
    severity_num: int = Field(alias="severityNum")
    # Grade 0 substituted because the grader failed; not a clear-skin signal
    severity_defaulted: bool = Field(default=False, alias="severityDefaulted")
    decided_by: str = Field(alias="decidedBy")
    per_adapter_labels: AdapterLabels = Field(alias="perAdapterLabels")
    api_errors: Dict[str, Optional[str]] = Field(alias="apiErrors")


class NoDetectionResponse(ApiModel):
    error: str = "NO_ACNE"
    message: str = "No acne could be detected in this image. Please upload a clearer photo of your face."
    per_adapter_labels: AdapterLabels = Field(alias="perAdapterLabels")
    api_errors: Dict[str, Optional[str]] = Field(alias="apiErrors")
    profile: Optional[UserProfile] = None


class TreatmentRequest(ApiModel):
    acne_type: Optional[str] = Field(default=None, alias="acneType")
    skin_type: Optional[str] = Field(default="Normal", alias="skinType")
    mode: Literal["daily", "weekly"] = "daily"


class TreatmentPlan(ApiModel):
    category: str
    mode: Literal["daily", "weekly"]
    plan: Dict[str, str]
    is_using_fallback: bool = Field(default=False, alias="isUsingFallback")
    parse_error: Optional[str] = Field(default=None, alias="parseError")
