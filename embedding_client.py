"""
Gemini text embedding client.

Wraps the ``batchEmbedContents`` endpoint.  An instance is a valid
embedding provider for SemanticAnalyzer: ``client.embed(texts)`` returns one
vector per input text, in order, or raises EmbeddingError.
"""

import logging
from typing import List, Optional, Sequence

import requests

from config import Config

logger = logging.getLogger(__name__)


class EmbeddingError(RuntimeError):
    """Raised when embeddings could not be obtained."""


class GeminiEmbeddingClient:
    """Fetches text embeddings from the Gemini API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.api_key = api_key if api_key is not None else Config.GEMINI_API_KEY
        self.model = model or Config.GEMINI_EMBEDDING_MODEL
        self.api_base = (api_base or Config.GEMINI_API_BASE).rstrip('/')
        self.timeout = timeout or Config.EMBEDDING_TIMEOUT

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed a batch of texts.

        Args:
            texts: Ordered texts to embed

        Returns:
            List of vectors, one per text

        Raises:
            EmbeddingError: on missing key, bad input, HTTP or format errors
        """
        if not isinstance(texts, (list, tuple)):
            raise EmbeddingError('texts must be an array')
        if not self.api_key:
            raise EmbeddingError('Gemini API key not configured')
        if not texts:
            return []

        url = f'{self.api_base}/{self.model}:batchEmbedContents'
        payload = {
            'requests': [
                {'model': self.model, 'content': {'parts': [{'text': text}]}}
                for text in texts
            ]
        }

        logger.info("Requesting embeddings for %d text(s)", len(texts))
        try:
            response = requests.post(
                url,
                params={'key': self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise EmbeddingError(f'Embedding request failed: {e}') from e

        if response.status_code != 200:
            logger.error("Gemini embedding API error %s: %s", response.status_code, response.text)
            raise EmbeddingError(f'Gemini API error: {response.status_code}')

        try:
            data = response.json()
            embeddings = [item['values'] for item in data['embeddings']]
        except (ValueError, KeyError, TypeError) as e:
            raise EmbeddingError(f'Malformed embedding response: {e}') from e

        if len(embeddings) != len(texts):
            raise EmbeddingError(
                f'Expected {len(texts)} embeddings, received {len(embeddings)}'
            )
        return embeddings
