"""
Module: composer.images.analysis

Purpose:
    Vision analysis of the fixed (hero) image through a local Ollama
    vision model. Asks the model for a focal point, a scene category and a
    short description, and validates the reply against
    analysis.schema.json.

    Analysis never fails the caller: a missing model, an unreachable
    server or a malformed reply all yield the center-focus fallback and a
    logged warning. The composition engine behaves identically whichever
    result it receives.

Key Functions:
    - analyze_image(): Analyze image bytes, with fallback
    - parse_analysis_reply(): Parse and validate raw model output

Key Classes:
    - AnalysisResult: Focal point, category, description

Dependencies:
    - ollama: Vision model client
    - compai.core.schemas: Reply validation (jsonschema)

Used By:
    - composer.session: Fixed image upload
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ollama import Client

from compai.core.models import ImageCategory, Point
from compai.core.schemas import ValidationError, validate_analysis

logger = logging.getLogger(__name__)

# Environment defaults
VISION_MODEL_ENV = "COMPAI_VISION_MODEL"
OLLAMA_HOST_ENV = "OLLAMA_HOST"

# Fallback description markers
NO_MODEL_MARKER = "No vision model configured"
FAILURE_MARKER = "Analysis failed"

ANALYSIS_PROMPT = """Analyze this real estate/product image.
1. Identify the primary focal point (x,y) normalized 0-1.
2. Classify the image into EXACTLY ONE of these categories:
   - 'house' (exterior facade, whole building)
   - 'living_room' (sofa, TV area)
   - 'kitchen' (cooking area, dining)
   - 'bedroom' (bed)
   - 'bathroom' (toilet, shower)
   - 'alley' (street outside, car access, road)
   - 'rooftop' (terrace, balcony, view from top)
   - 'other' (anything else)
3. Provide a 5-word description.

Respond with JSON only: {"focalPoint": {"x": 0.5, "y": 0.5}, "category": "...", "description": "..."}"""


@dataclass(frozen=True)
class AnalysisResult:
    """
    Outcome of analyzing one image.

    Attributes:
        focal_point: Normalized point of visual interest (not clamped)
        category: Scene category
        description: Short description, or a failure marker
        is_fallback: True when this is the default result, not a model reply
    """

    focal_point: Point
    category: ImageCategory
    description: str
    is_fallback: bool = False

    @classmethod
    def fallback(cls, marker: str = FAILURE_MARKER) -> AnalysisResult:
        """Center focus, category OTHER, description set to the marker."""
        return cls(
            focal_point=Point.center(),
            category=ImageCategory.OTHER,
            description=marker,
            is_fallback=True,
        )


def default_model() -> Optional[str]:
    """Vision model name from the environment, or None if unset."""
    return os.getenv(VISION_MODEL_ENV) or None


def _parse_json_response(raw: str) -> Dict[str, Any]:
    """Parse JSON from model output, tolerating code fences and thinking blocks."""
    if raw is None:
        raise ValueError("Empty response")

    def _clean(text: str) -> str:
        # Strip <think>...</think> blocks
        text = re.sub(r"<think>.*?</think>", "", text, flags=re.DOTALL)
        # Strip ```json fences
        text = re.sub(r"```(?:json)?\n?|```", "", text)
        return text.strip()

    candidates: List[str] = []

    cleaned = _clean(raw)
    if cleaned:
        candidates.append(cleaned)

    m_full = re.search(r"\{.*\}", cleaned, re.S)
    if m_full:
        candidates.append(m_full.group(0))

    for cand in candidates:
        try:
            return json.loads(cand)
        except json.JSONDecodeError:
            continue

    raise ValueError(f"Could not parse JSON response. Raw: {raw!r}")


def parse_analysis_reply(raw: str) -> AnalysisResult:
    """
    Parse and validate a raw model reply.

    Raises:
        ValueError: If the reply is not JSON
        ValidationError: If the JSON does not match the analysis schema
    """
    data = _parse_json_response(raw)
    validate_analysis(data)
    return AnalysisResult(
        focal_point=Point.from_dict(data["focalPoint"]),
        category=ImageCategory(data["category"]),
        description=data["description"],
    )


def analyze_image(
    data: bytes,
    *,
    model: Optional[str] = None,
    client: Optional[Client] = None,
    host: Optional[str] = None,
) -> AnalysisResult:
    """
    Analyze an image with a vision model, falling back on any failure.

    Args:
        data: Encoded image bytes (JPEG/PNG/...)
        model: Ollama model name; defaults to $COMPAI_VISION_MODEL
        client: Pre-built Ollama client (tests inject a mock here)
        host: Ollama server URL when no client is given; defaults to
            $OLLAMA_HOST, then the library default

    Returns:
        AnalysisResult from the model, or the fallback result

    Example:
        >>> result = analyze_image(Path("hero.jpg").read_bytes(), model="llava")
        >>> result.category
        <ImageCategory.HOUSE: 'house'>
    """
    model = model or default_model()
    if not model:
        logger.warning("No vision model configured, using default center focus")
        return AnalysisResult.fallback(NO_MODEL_MARKER)

    try:
        if client is None:
            client = Client(host=host or os.getenv(OLLAMA_HOST_ENV))
        response = client.chat(
            model=model,
            messages=[
                {"role": "user", "content": ANALYSIS_PROMPT, "images": [data]},
            ],
            format="json",
            options={"temperature": 0.0},
        )
        content = response["message"]["content"]
        if not content or not content.strip():
            raise ValueError("Empty response from vision model")
        result = parse_analysis_reply(content)
    except (ValidationError, ValueError, KeyError, TypeError) as e:
        logger.warning(f"Vision analysis returned an unusable reply: {e}")
        return AnalysisResult.fallback(FAILURE_MARKER)
    except Exception as e:
        # Connection errors, ollama.ResponseError, timeouts
        logger.warning(f"Vision analysis failed: {type(e).__name__}: {e}")
        return AnalysisResult.fallback(FAILURE_MARKER)

    logger.info(
        f"Vision analysis: category={result.category}, "
        f"focal=({result.focal_point.x:.2f}, {result.focal_point.y:.2f}), "
        f"description={result.description!r}"
    )
    return result
