"""
One adapter per external classification source.

Every adapter exposes `invoke(image) -> AdapterOutcome`, which never raises:
the remote call runs under `invoke_with_timeout` and any failure comes back as
a typed `Failure`. Inside `classify` adapters raise `AdapterError` for
contract violations they can recognise and let transport errors bubble up.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Optional, Sequence

import httpx
from openai import AsyncOpenAI

from .acne_types import GENERIC_LABEL, NO_ACNE_SENTINEL, UNKNOWN_LABEL, VALID_TYPES
from .imaging import NormalizedImage
from .invoker import classify_exception, describe_exception, invoke_with_timeout
from .outcomes import AdapterError, AdapterOutcome, FailureKind, Success

logger = logging.getLogger(__name__)

CLASSIFICATION_PROMPT = f"""You are an acne-classification expert.
TASK: Return ONE WORD ONLY - the acne type that best matches the face in this image.
VALID TYPES: {', '.join(VALID_TYPES)}
If you detect NO visible acne, or the picture is not a human face, reply exactly: {NO_ACNE_SENTINEL}"""


def _response_json(name: str, response: httpx.Response) -> Any:
    if response.is_error:
        raise AdapterError(FailureKind.HTTP_ERROR, f"{name} HTTP {response.status_code}")
    try:
        return response.json()
    except ValueError as e:
        raise AdapterError(FailureKind.MALFORMED_RESPONSE, f"{name} returned non-JSON body") from e


def _as_float(value, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class ClassifierAdapter:
    name = "adapter"

    def __init__(self, timeout: float):
        self.timeout = timeout

    async def classify(self, image: NormalizedImage) -> Success:
        raise NotImplementedError

    async def invoke(self, image: NormalizedImage) -> AdapterOutcome:
        return await invoke_with_timeout(self.name, lambda: self.classify(image), self.timeout)


# ==================== BOUNDING-BOX DETECTOR ====================

def parse_detector_label(data: Any) -> str:
    if not isinstance(data, dict):
        raise AdapterError(FailureKind.MALFORMED_RESPONSE, "detector response is not an object")

    predicted_classes = data.get("predicted_classes")
    if isinstance(predicted_classes, list) and predicted_classes:
        return str(predicted_classes[0])

    predictions = data.get("predictions")
    if isinstance(predictions, list) and predictions:
        candidates = [p for p in predictions if isinstance(p, dict) and p.get("class")]
        if not candidates:
            raise AdapterError(FailureKind.MALFORMED_RESPONSE, "detector predictions carry no class")
        best = max(candidates, key=lambda p: _as_float(p.get("confidence")))
        return str(best["class"])

    return UNKNOWN_LABEL


class DetectorAdapter(ClassifierAdapter):
    """
    Object-detection source. Historically treated as always having an opinion:
    a non-2xx answer degrades to the generic label instead of a failure.
    """

    name = "detector"

    def __init__(self, client: httpx.AsyncClient, url: str, api_key: str = "", timeout: float = 40.0):
        super().__init__(timeout)
        self.client = client
        self.url = url
        self.api_key = api_key

    async def classify(self, image: NormalizedImage) -> Success:
        params = {"api_key": self.api_key} if self.api_key else None
        response = await self.client.post(
            self.url,
            params=params,
            content=image.base64,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        if response.is_error:
            logger.error(f"Detector error {response.status_code}: {response.text[:300]}")
            return Success(value=GENERIC_LABEL, raw_label=None)

        label = parse_detector_label(_response_json(self.name, response))
        return Success(value=label, raw_label=label)


# ==================== DIRECT CLASSIFIER ====================

def parse_classifier_label(data: Any, class_names: Optional[Sequence[str]] = None) -> str:
    if not isinstance(data, dict):
        raise AdapterError(FailureKind.MALFORMED_RESPONSE, "classifier response is not an object")

    boxes = data.get("bounding_boxes")
    if boxes is None:
        # Older deployments answer with a bare {label, confidence}
        if isinstance(data.get("label"), str):
            return data["label"] or UNKNOWN_LABEL
        raise AdapterError(FailureKind.MALFORMED_RESPONSE, "classifier response has no bounding_boxes")

    if not isinstance(boxes, list):
        raise AdapterError(FailureKind.MALFORMED_RESPONSE, "bounding_boxes is not a list")
    if not boxes:
        return UNKNOWN_LABEL

    entries = [b for b in boxes if isinstance(b, dict) and "class_id" in b]
    if not entries:
        raise AdapterError(FailureKind.MALFORMED_RESPONSE, "bounding_boxes entries carry no class_id")

    best = max(entries, key=lambda b: _as_float(b.get("percentage_conf")))
    class_id = best["class_id"]
    if class_names and isinstance(class_id, int) and 0 <= class_id < len(class_names):
        return class_names[class_id]
    return str(class_id)


class DirectClassifierAdapter(ClassifierAdapter):
    name = "classifier"

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        timeout: float = 40.0,
        class_names: Optional[Sequence[str]] = None,
    ):
        super().__init__(timeout)
        self.client = client
        self.url = url
        self.class_names = list(class_names) if class_names else None

    async def classify(self, image: NormalizedImage) -> Success:
        response = await self.client.post(self.url, files={"file": image.as_upload()})
        label = parse_classifier_label(_response_json(self.name, response), self.class_names)
        return Success(value=label, raw_label=label)


# ==================== GENERATIVE VISION MODEL ====================

class GenerationStage(str, Enum):
    UPLOADING = "uploading"
    GENERATING = "generating"
    DONE = "done"
    FAILED = "failed"


def clean_generative_label(text: str) -> str:
    cleaned = (text or "").strip().strip("`'\".*_").strip()
    return cleaned or UNKNOWN_LABEL


class GenerativeAdapter(ClassifierAdapter):
    """
    Upload-then-classify against a vision LLM.

    The call moves through UPLOADING -> GENERATING -> DONE; each step has its
    own deadline and the overall budget is their sum. A failure is reported
    with the stage it happened in.
    """

    name = "generative"

    def __init__(
        self,
        client: Optional[AsyncOpenAI],
        model: str = "gpt-4o-mini",
        upload_timeout: float = 20.0,
        generate_timeout: float = 30.0,
    ):
        super().__init__(upload_timeout + generate_timeout)
        self.client = client
        self.model = model
        self.upload_timeout = upload_timeout
        self.generate_timeout = generate_timeout

    async def _step(self, stage: GenerationStage, coro, timeout: float):
        logger.debug(f"generative stage -> {stage.value}")
        try:
            return await asyncio.wait_for(coro, timeout=timeout)
        except AdapterError:
            raise
        except Exception as e:
            kind = classify_exception(e)
            if kind is FailureKind.TIMEOUT:
                detail = f"generative {stage.value} timed out after {timeout:g}s"
            else:
                detail = f"generative {stage.value} failed: {describe_exception(self.name, e, timeout)}"
            logger.debug(f"generative stage -> {GenerationStage.FAILED.value} during {stage.value}")
            raise AdapterError(kind, detail) from e

    async def _upload(self, image: NormalizedImage) -> str:
        uploaded = await self.client.files.create(file=image.as_upload(), purpose="vision")
        if not getattr(uploaded, "id", None):
            raise AdapterError(FailureKind.MALFORMED_RESPONSE, "generative upload returned no file id")
        return uploaded.id

    async def _generate(self, file_id: str) -> str:
        response = await self.client.responses.create(
            model=self.model,
            temperature=0,
            input=[
                {
                    "role": "user",
                    "content": [
                        {"type": "input_image", "file_id": file_id},
                        {"type": "input_text", "text": CLASSIFICATION_PROMPT},
                    ],
                }
            ],
        )
        return response.output_text or ""

    async def classify(self, image: NormalizedImage) -> Success:
        if self.client is None:
            raise AdapterError(FailureKind.UNKNOWN, "generative model not configured")

        file_id = await self._step(GenerationStage.UPLOADING, self._upload(image), self.upload_timeout)
        text = await self._step(GenerationStage.GENERATING, self._generate(file_id), self.generate_timeout)
        logger.debug(f"generative stage -> {GenerationStage.DONE.value}")

        raw = text.strip()
        return Success(value=clean_generative_label(raw), raw_label=raw)


# ==================== SEVERITY GRADER ====================

def parse_grade(data: Any) -> int:
    if not isinstance(data, dict) or "predicted_grade" not in data:
        raise AdapterError(FailureKind.MALFORMED_RESPONSE, "grader response has no predicted_grade")

    grade = data["predicted_grade"]
    if isinstance(grade, bool):
        raise AdapterError(FailureKind.MALFORMED_RESPONSE, "predicted_grade is not an integer")
    if isinstance(grade, float) and grade.is_integer():
        grade = int(grade)
    if isinstance(grade, str) and grade.strip().lstrip("-").isdigit():
        grade = int(grade.strip())
    if not isinstance(grade, int):
        raise AdapterError(FailureKind.MALFORMED_RESPONSE, f"predicted_grade is not an integer: {grade!r}")
    return grade


class SeverityGraderAdapter(ClassifierAdapter):
    name = "grader"

    def __init__(self, client: httpx.AsyncClient, url: str, timeout: float = 40.0):
        super().__init__(timeout)
        self.client = client
        self.url = url

    async def classify(self, image: NormalizedImage) -> Success:
        response = await self.client.post(self.url, files={"file": image.as_upload()})
        grade = parse_grade(_response_json(self.name, response))
        return Success(value=grade, raw_label=str(grade))
