import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from .acne_types import VALID_TYPES

ROOT_DIR = Path(__file__).parent.parent
load_dotenv(ROOT_DIR / '.env')

logger = logging.getLogger(__name__)

# Default deadlines (seconds)
DEFAULT_CLASSIFY_TIMEOUT = 40.0
DEFAULT_UPLOAD_TIMEOUT = 20.0
DEFAULT_GENERATE_TIMEOUT = 30.0
DEFAULT_PLAN_TIMEOUT = 15.0

# Environment variable consulted for each adapter deadline
TIMEOUT_ENV_KEYS = {
    'detector': 'TIMEOUT_DETECTOR',
    'classifier': 'TIMEOUT_CLASSIFIER',
    'grader': 'TIMEOUT_GRADER',
    'generative_upload': 'TIMEOUT_GENERATIVE_UPLOAD',
    'generative': 'TIMEOUT_GENERATIVE',
    'treatment_plan': 'TIMEOUT_TREATMENT_PLAN',
}

DEFAULT_TIMEOUTS = {
    'detector': DEFAULT_CLASSIFY_TIMEOUT,
    'classifier': DEFAULT_CLASSIFY_TIMEOUT,
    'grader': DEFAULT_CLASSIFY_TIMEOUT,
    'generative_upload': DEFAULT_UPLOAD_TIMEOUT,
    'generative': DEFAULT_GENERATE_TIMEOUT,
    'treatment_plan': DEFAULT_PLAN_TIMEOUT,
}


def _env_float(key: str, default: float, env: Dict[str, str]) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid value for {key}: {raw!r}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring non-positive value for {key}: {raw!r}")
        return default
    return value


def _env_list(key: str, default: List[str], env: Dict[str, str]) -> List[str]:
    raw = env.get(key)
    if raw is None or raw.strip() == '':
        return list(default)
    return [item.strip() for item in raw.split(',') if item.strip()]


def _env_int(key: str, default: int, env: Dict[str, str]) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid value for {key}: {raw!r}")
        return default


class Settings(BaseModel):
    """Everything the prediction pipeline needs from the outside world.

    Built once at startup and handed to the aggregator and the treatment
    planner; nothing in the pipeline reads the environment on its own.
    """

    detector_url: str = 'https://serverless.roboflow.com/acne-detection-g5vvz/1'
    detector_api_key: str = ''
    classifier_url: str = 'https://designarshaq-acne9m.hf.space/predict'
    grader_url: str = 'https://designarshaq-asgm-api.hf.space/predict'

    # Index -> name for numeric class_id answers from the direct classifier
    classifier_class_names: List[str] = list(VALID_TYPES)

    openai_api_key: str = ''
    openai_vision_model: str = 'gpt-4o-mini'
    openai_plan_model: str = 'gpt-4o'

    timeouts: Dict[str, float] = dict(DEFAULT_TIMEOUTS)

    image_max_side: int = 640
    image_jpeg_quality: int = 80

    log_level: str = 'INFO'

    def timeout_for(self, name: str) -> float:
        return self.timeouts.get(name, DEFAULT_TIMEOUTS.get(name, DEFAULT_CLASSIFY_TIMEOUT))

    @classmethod
    def from_env(cls, env: Optional[Dict[str, str]] = None) -> 'Settings':
        env = dict(os.environ) if env is None else env
        defaults = cls()

        timeouts = {
            name: _env_float(key, DEFAULT_TIMEOUTS[name], env)
            for name, key in TIMEOUT_ENV_KEYS.items()
        }

        return cls(
            detector_url=env.get('DETECTOR_URL', defaults.detector_url),
            detector_api_key=env.get('DETECTOR_API_KEY', ''),
            classifier_url=env.get('CLASSIFIER_URL', defaults.classifier_url),
            classifier_class_names=_env_list('CLASSIFIER_CLASS_NAMES', defaults.classifier_class_names, env),
            grader_url=env.get('GRADER_URL', defaults.grader_url),
            openai_api_key=env.get('OPENAI_API_KEY', ''),
            openai_vision_model=env.get('OPENAI_VISION_MODEL', defaults.openai_vision_model),
            openai_plan_model=env.get('OPENAI_PLAN_MODEL', defaults.openai_plan_model),
            timeouts=timeouts,
            image_max_side=_env_int('IMAGE_MAX_SIDE', defaults.image_max_side, env),
            image_jpeg_quality=_env_int('IMAGE_JPEG_QUALITY', defaults.image_jpeg_quality, env),
            log_level=env.get('LOG_LEVEL', defaults.log_level).upper(),
        )
