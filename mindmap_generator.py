"""
Mind Map Generator Module
Asks the Gemini API to break a free-text topic into a structured mind map.
"""

import json
import logging
from typing import Any, Dict, Optional

import requests

from config import Config
from mindmap_model import MindMapValidationError, validate_mindmap

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """You are a mind mapping assistant. Your task is to analyze user input and create a structured mind map.

IMPORTANT: You must respond with ONLY valid JSON in this exact format:
{{
  "centralIdea": "string - the main topic or problem",
  "branches": [
    {{
      "title": "string - main branch title",
      "subBranches": ["string - sub-point 1", "string - sub-point 2"]
    }}
  ]
}}

Guidelines:
- Create 3-6 main branches that cover different aspects of the topic
- Each branch should have 2-4 sub-branches with specific details
- Keep text concise and clear
- Focus on breaking down complex ideas into organized components
- Do not include any explanatory text, only output the JSON structure

Create a mind map for the following:

{topic}"""


class MindMapGenerationError(Exception):
    """Raised when a mind map could not be generated."""

    def __init__(self, message: str, upstream: bool = False):
        super().__init__(message)
        # True when the failure came from the Gemini service, not the caller
        self.upstream = upstream


class GeminiMindMapGenerator:
    """Generates mind map structures from free text using Gemini."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.api_key = api_key if api_key is not None else Config.GEMINI_API_KEY
        self.model = model or Config.GEMINI_MODEL
        self.api_base = (api_base or Config.GEMINI_API_BASE).rstrip('/')
        self.timeout = timeout or Config.EXTERNAL_API_TIMEOUT
        self.temperature = 0.7
        self.max_output_tokens = 2048

    def build_prompt(self, topic: str) -> str:
        return PROMPT_TEMPLATE.format(topic=topic)

    def generate(self, topic: str) -> Dict[str, Any]:
        """
        Generate a mind map for a topic.

        Args:
            topic: Problem, idea or question to map

        Returns:
            Dictionary with ``centralIdea`` and ``branches``

        Raises:
            MindMapGenerationError: on empty input, missing key, upstream
                failure or a response that is not a mind map
        """
        if not topic or not str(topic).strip():
            raise MindMapGenerationError('User input cannot be empty')
        if not self.api_key:
            raise MindMapGenerationError('API key is required')

        url = f'{self.api_base}/models/{self.model}:generateContent'
        body = {
            'contents': [{'parts': [{'text': self.build_prompt(topic)}]}],
            'generationConfig': {
                'temperature': self.temperature,
                'maxOutputTokens': self.max_output_tokens,
                'responseMimeType': 'application/json',
            },
        }

        logger.info("Generating mind map with %s for %d characters", self.model, len(topic))
        try:
            response = requests.post(
                url,
                params={'key': self.api_key},
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise MindMapGenerationError(f'Gemini API request failed: {e}', upstream=True) from e

        if not 200 <= response.status_code < 300:
            raise MindMapGenerationError(
                f'Gemini API request failed: {response.status_code} {response.reason}. {response.text}',
                upstream=True,
            )

        try:
            data = response.json()
            content = data['candidates'][0]['content']['parts'][0]['text']
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise MindMapGenerationError('Invalid response format from Gemini API', upstream=True) from e

        try:
            parsed = json.loads(content)
        except (TypeError, ValueError) as e:
            raise MindMapGenerationError(
                f'Failed to parse Gemini response as JSON: {e}', upstream=True
            ) from e

        try:
            mind_map = validate_mindmap(parsed)
        except MindMapValidationError as e:
            raise MindMapGenerationError(
                f'AI response does not match expected mind map structure: {e}', upstream=True
            ) from e

        logger.info(
            "Generated mind map '%s' with %d branch(es)",
            mind_map['centralIdea'], len(mind_map['branches']),
        )
        return mind_map
